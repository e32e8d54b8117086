"""Gmail raw message submission."""

import logging
from typing import Dict, Any

from ..timing import time_api_call

logger = logging.getLogger(__name__)


@time_api_call
def send_raw_message(service: Any, raw: str) -> Dict[str, Any]:
    """
    Send a fully formed message via Gmail.

    Args:
        service: Gmail API service object
        raw: The RFC 2822 message, URL-safe base64 encoded

    Returns:
        Dict containing:
            - id: Message ID of the sent email
            - threadId: Thread ID
            - labelIds: Labels applied to the sent message
    """
    result = service.users().messages().send(
        userId="me",
        body={"raw": raw}
    ).execute()

    logger.info(f"Email sent successfully. Message ID: {result.get('id')}")

    return {
        "id": result.get("id"),
        "threadId": result.get("threadId"),
        "labelIds": result.get("labelIds", []),
    }
