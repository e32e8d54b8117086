"""Gmail message and attachment retrieval."""

import logging
from typing import Dict, Any

from ..timing import time_api_call
from .mime import decode_web64

logger = logging.getLogger(__name__)


@time_api_call
def fetch_message(service: Any, message_id: str) -> Dict[str, Any]:
    """
    Retrieve a Gmail message in `full` format.

    Args:
        service: Gmail API service object
        message_id: The Gmail message ID

    Returns:
        The message resource dict; `payload` holds the MIME part tree.
    """
    logger.debug(f"Retrieving message with ID: {message_id}")
    return service.users().messages().get(
        userId='me', id=message_id, format='full'
    ).execute()


@time_api_call
def fetch_attachment(service: Any, message_id: str, attachment_id: str) -> bytes:
    """
    Download an attachment from a Gmail message.

    Args:
        service: Gmail API service object
        message_id: The Gmail message ID containing the attachment
        attachment_id: The attachment ID from the message payload

    Returns:
        The decoded binary content of the attachment
    """
    logger.debug(f"Downloading attachment {attachment_id} from message {message_id}")
    attachment = service.users().messages().attachments().get(
        userId='me',
        messageId=message_id,
        id=attachment_id
    ).execute()

    data = decode_web64(attachment.get('data') or '')
    logger.debug(f"Downloaded attachment: {len(data)} bytes")
    return data
