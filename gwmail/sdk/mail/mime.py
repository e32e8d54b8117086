"""MIME part tree model and the pure walks used when forwarding a message.

Nothing in this module talks to the network. A fetched Gmail payload is
turned into a MessagePart tree once; body selection and attachment
collection are plain functions over that tree, so they can be tested with
hand-built trees.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from email.message import Message
from typing import Iterator, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

DEFAULT_ATTACHMENT_MIME_TYPE = "application/octet-stream"
DEFAULT_BODY_MIME_TYPE = "text/plain"
DEFAULT_CHARSET = "utf-8"


def get_header(headers: Sequence[Tuple[str, str]], name: str, default: str = "") -> str:
    """Return the value of the first header matching `name` case-insensitively."""
    wanted = name.lower()
    for header_name, value in headers:
        if header_name.lower() == wanted:
            return value
    return default


def decode_web64(data: str) -> bytes:
    """Decode URL-safe base64 as returned by the Gmail API, tolerating missing padding."""
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _parameter_view(headers: Sequence[Tuple[str, str]]) -> Message:
    """Load the content headers into an email.message.Message for parameter parsing."""
    msg = Message()
    for name, value in headers:
        if name.lower() in ("content-type", "content-disposition"):
            msg[name] = value
    return msg


@dataclass
class MessagePart:
    """One node of a fetched message's MIME tree."""

    mime_type: str = ""
    headers: List[Tuple[str, str]] = field(default_factory=list)
    body_data: Optional[str] = None
    attachment_id: Optional[str] = None
    filename: str = ""
    children: List["MessagePart"] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: Optional[dict]) -> "MessagePart":
        """
        Build a tree from a Gmail API `format=full` payload dict.

        Every field may be missing; an empty payload yields an empty leaf.
        The filename comes from Gmail's `filename` field when present, else
        from the Content-Disposition `filename` or Content-Type `name`
        parameter.
        """
        payload = payload or {}
        headers = [
            (h.get("name") or "", h.get("value") or "")
            for h in payload.get("headers") or []
        ]
        body = payload.get("body") or {}
        filename = payload.get("filename") or _parameter_view(headers).get_filename() or ""
        return cls(
            mime_type=(payload.get("mimeType") or "").lower(),
            headers=headers,
            body_data=body.get("data") or None,
            attachment_id=body.get("attachmentId") or None,
            filename=filename,
            children=[cls.from_api(child) for child in payload.get("parts") or []],
        )

    @property
    def is_leaf(self) -> bool:
        return not self.children

    @property
    def content_type(self) -> str:
        """The declared MIME type; an undeclared leaf is text/plain (RFC 2045)."""
        if not self.mime_type and self.is_leaf:
            return DEFAULT_BODY_MIME_TYPE
        return self.mime_type

    def header(self, name: str) -> str:
        return get_header(self.headers, name)

    @property
    def charset(self) -> str:
        return _parameter_view(self.headers).get_content_charset(DEFAULT_CHARSET)

    def walk(self) -> Iterator["MessagePart"]:
        """Yield this part and all descendants in pre-order, children left-to-right."""
        stack = [self]
        while stack:
            part = stack.pop()
            yield part
            stack.extend(reversed(part.children))


@dataclass
class AttachmentDescriptor:
    """An attachment found in an original message, ready to be re-fetched."""

    attachment_id: Optional[str]
    filename: str
    mime_type: str = DEFAULT_ATTACHMENT_MIME_TYPE
    # Gmail sometimes ships small attachments inline instead of behind an ID.
    inline_data: Optional[str] = None


@dataclass
class BodySelection:
    text: str = ""
    is_html: bool = False
    plain_part: Optional[MessagePart] = None
    html_part: Optional[MessagePart] = None

    @property
    def chosen_parts(self) -> List[MessagePart]:
        return [p for p in (self.plain_part, self.html_part) if p is not None]


def decode_part_text(part: MessagePart) -> Optional[str]:
    """
    Decode a part's body as text.

    Returns None when the part has no body data or the data is not valid
    base64; such a part contributes nothing to body selection.
    """
    if not part.body_data:
        return None
    try:
        raw = decode_web64(part.body_data)
    except (binascii.Error, ValueError) as e:
        logger.debug(f"Skipping undecodable {part.mime_type} part: {e}")
        return None
    try:
        return raw.decode(part.charset, errors="replace")
    except LookupError:
        return raw.decode(DEFAULT_CHARSET, errors="replace")


def select_body(root: MessagePart) -> BodySelection:
    """
    Pick the best plain-text rendering of a message body.

    The walk is pre-order, so a root text/plain part with data wins outright.
    The first decodable text/plain part anywhere in the tree beats any
    text/html part. Without one, the first decodable text/html part is
    returned as raw markup with `is_html` set. With neither, the text is
    empty.
    """
    selection = BodySelection()
    plain_text = html_text = None

    for part in root.walk():
        if selection.plain_part is not None and selection.html_part is not None:
            break
        if part.content_type == "text/plain" and selection.plain_part is None:
            text = decode_part_text(part)
            if text:
                selection.plain_part, plain_text = part, text
        elif part.content_type == "text/html" and selection.html_part is None:
            text = decode_part_text(part)
            if text:
                selection.html_part, html_text = part, text

    if plain_text is not None:
        selection.text = plain_text
    elif html_text is not None:
        selection.text = html_text
        selection.is_html = True
    return selection


def collect_attachments(
    root: MessagePart,
    selection: Optional[BodySelection] = None,
) -> List[AttachmentDescriptor]:
    """
    Collect the attachments of a message in pre-order, left-to-right.

    An attachment is a leaf part with a filename that is not one of the
    body parts chosen by `select_body`, and that can be re-fetched (has an
    attachment ID) or carries its data inline.
    """
    if selection is None:
        selection = select_body(root)
    body_parts = {id(p) for p in selection.chosen_parts}

    attachments = []
    for part in root.walk():
        if not part.is_leaf or not part.filename or id(part) in body_parts:
            continue
        if not part.attachment_id and not part.body_data:
            logger.debug(f"Attachment '{part.filename}' has no content, skipping")
            continue
        attachments.append(AttachmentDescriptor(
            attachment_id=part.attachment_id,
            filename=part.filename,
            mime_type=part.mime_type or DEFAULT_ATTACHMENT_MIME_TYPE,
            inline_data=None if part.attachment_id else part.body_data,
        ))
    return attachments
