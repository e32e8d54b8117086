"""Forwarding a Gmail message, attachments included.

The original message is fetched in full, its body and attachments are
picked out of the MIME tree, and a new message is built and sent:

    forward_message()
        fetch_message() -> MessagePart.from_api()
        compose_forward()
            select_body(), collect_attachments()
            fetch each attachment (failures are skipped, not fatal)
            serialize with CRLF line endings, URL-safe base64 for transport
        send_raw_message()
"""

import base64
import logging
import uuid
from dataclasses import dataclass, field
from email import encoders
from email.charset import Charset
from email.header import Header
from email.message import Message
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.policy import compat32
from typing import Any, Callable, Dict, List, Optional, Union

from ..exceptions import MailOperationError, ValidationError
from .mime import (
    AttachmentDescriptor,
    MessagePart,
    collect_attachments,
    decode_web64,
    select_body,
)
from .read import fetch_message, fetch_attachment
from .send import send_raw_message
from .service import get_gmail_service

logger = logging.getLogger(__name__)

FORWARD_SUBJECT_PREFIX = "Fwd: "

FORWARD_TEMPLATE = (
    "---------- Forwarded message ----------\n"
    "From: {sender}\n"
    "Date: {date}\n"
    "Subject: {subject}\n"
    "To: {recipient}\n"
    "\n"
    "{body}"
)

# RFC 2822 requires CRLF line endings on the wire.
WIRE_POLICY = compat32.clone(linesep="\r\n")

# Text bodies go out as UTF-8 with a 7bit/8bit transfer encoding, not base64.
BODY_CHARSET = Charset("utf-8")
BODY_CHARSET.body_encoding = None

AttachmentFetcher = Callable[[str], bytes]


@dataclass
class ComposedForward:
    """A forward built from an original message, ready to submit."""

    to: str
    subject: str
    body_text: str
    parts: List[Message] = field(default_factory=list)
    boundary: Optional[str] = None
    mime_bytes: bytes = b""
    raw: str = ""
    failed_attachments: List[str] = field(default_factory=list)

    @property
    def attachment_count(self) -> int:
        return len(self.parts) - 1 if self.parts else 0


def new_boundary() -> str:
    """Generate a multipart boundary; '=_' never occurs in base64 output."""
    return f"=_gwmail_{uuid.uuid4().hex}"


def build_forward_body(original: MessagePart, body: str) -> str:
    return FORWARD_TEMPLATE.format(
        sender=original.header("From"),
        date=original.header("Date"),
        subject=original.header("Subject"),
        recipient=original.header("To"),
        body=body,
    )


def _header_value(value: str) -> Union[str, Header]:
    if value.isascii():
        return value
    return Header(value, "utf-8")


def _attachment_bytes(descriptor: AttachmentDescriptor,
                      fetch_attachment: Optional[AttachmentFetcher]) -> bytes:
    if descriptor.inline_data is not None:
        return decode_web64(descriptor.inline_data)
    if fetch_attachment is None:
        raise ValueError("no attachment fetcher available")
    return fetch_attachment(descriptor.attachment_id)


def build_attachment_part(descriptor: AttachmentDescriptor, data: bytes) -> MIMEBase:
    """Wrap attachment bytes in a base64 MIME part with an attachment disposition."""
    maintype, _, subtype = descriptor.mime_type.partition("/")
    if not maintype or not subtype:
        maintype, subtype = "application", "octet-stream"
    part = MIMEBase(maintype, subtype)
    part.set_payload(data)
    encoders.encode_base64(part)
    part.add_header("Content-Disposition", "attachment", filename=descriptor.filename)
    return part


def compose_forward(
    original: MessagePart,
    to: str,
    subject: Optional[str] = None,
    fetch_attachment: Optional[AttachmentFetcher] = None,
) -> ComposedForward:
    """
    Build a forward of `original` addressed to `to`.

    Args:
        original: Root of the original message's MIME tree
        to: Recipient address
        subject: Subject override; defaults to "Fwd: <original subject>"
        fetch_attachment: Callable returning the bytes of an attachment ID

    A failure fetching or decoding one attachment is logged as a warning
    and that attachment is left out; the rest of the forward proceeds.
    Without any embedded attachment the message is a single text/plain
    part with no multipart envelope.
    """
    original_subject = original.header("Subject")
    final_subject = subject if subject else FORWARD_SUBJECT_PREFIX + original_subject

    selection = select_body(original)
    if selection.is_html:
        logger.debug("No text/plain body found, quoting the HTML body as-is")
    body_text = build_forward_body(original, selection.text)

    composed = ComposedForward(to=to, subject=final_subject, body_text=body_text)
    text_part = MIMEText(body_text, "plain", BODY_CHARSET)
    attachment_parts = []

    for descriptor in collect_attachments(original, selection):
        try:
            data = _attachment_bytes(descriptor, fetch_attachment)
        except Exception as e:
            logger.warning(f"Failed to attach {descriptor.filename}: {e}")
            composed.failed_attachments.append(descriptor.filename)
            continue
        attachment_parts.append(build_attachment_part(descriptor, data))

    if attachment_parts:
        composed.boundary = new_boundary()
        message = MIMEMultipart("mixed", boundary=composed.boundary)
        for part in [text_part] + attachment_parts:
            # MIME-Version belongs on the top-level message only.
            del part["MIME-Version"]
            message.attach(part)
    else:
        message = text_part
    composed.parts = [text_part] + attachment_parts

    message["To"] = _header_value(to)
    message["Subject"] = _header_value(final_subject)

    composed.mime_bytes = message.as_bytes(policy=WIRE_POLICY)
    composed.raw = base64.urlsafe_b64encode(composed.mime_bytes).decode("ascii")
    logger.debug(
        f"Composed forward to {to} with {composed.attachment_count} attachment(s), "
        f"{len(composed.mime_bytes)} bytes"
    )
    return composed


def forward_message(
    message_id: str,
    to: str,
    subject: Optional[str] = None,
    profile: str = None,
    use_adc: bool = False,
    service: Any = None,
) -> Dict[str, Any]:
    """
    Forward a Gmail message, re-attaching its original attachments.

    Args:
        message_id: ID of the message to forward
        to: Recipient email address
        subject: Optional subject (default: "Fwd: " + original subject)
        profile: Optional profile name to use
        use_adc: Force use of Application Default Credentials
        service: Gmail service to use instead of building one from credentials

    Returns:
        Dict containing:
            - sent: ID of the sent message
            - threadId: Thread ID of the sent message
            - to: Recipient
            - subject: Final subject
            - forwarded: ID of the original message
            - attachments: Number of attachments actually embedded

    Raises:
        ValidationError: If the message ID or recipient is empty
        MailOperationError: If fetching, composing or sending the forward fails
    """
    message_id = (message_id or "").strip()
    if not message_id:
        raise ValidationError("message ID is required")
    to = (to or "").strip()
    if not to:
        raise ValidationError("--to is required")

    if service is None:
        service = get_gmail_service(profile=profile, use_adc=use_adc)

    try:
        original = fetch_message(service, message_id)
    except Exception as e:
        raise MailOperationError("fetching message", e) from e

    try:
        composed = compose_forward(
            MessagePart.from_api(original.get("payload")),
            to=to,
            subject=subject,
            fetch_attachment=lambda attachment_id: fetch_attachment(service, message_id, attachment_id),
        )
    except Exception as e:
        raise MailOperationError("composing message", e) from e

    try:
        sent = send_raw_message(service, composed.raw)
    except Exception as e:
        raise MailOperationError("sending forwarded message", e) from e

    logger.info(
        f"Forwarded message {message_id} to {to} with "
        f"{composed.attachment_count} attachment(s) (sent: {sent['id']})"
    )
    return {
        "sent": sent["id"],
        "threadId": sent["threadId"],
        "to": to,
        "subject": composed.subject,
        "forwarded": message_id,
        "attachments": composed.attachment_count,
    }
