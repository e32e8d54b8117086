"""Gmail operations for the gwmail SDK.

Provides forwarding (with attachments) and batch label modification.

Example usage:
    from gwmail.sdk import mail

    # Forward a message, keeping its attachments
    result = mail.forward_message("message_id_here", to="someone@example.com")

    # Archive two messages and tag them
    mail.modify_messages(["id1", "id2"], add_labels=["Receipts"], archive=True)
"""

from .service import get_gmail_service
from .mime import (
    MessagePart,
    AttachmentDescriptor,
    BodySelection,
    get_header,
    select_body,
    collect_attachments,
)
from .forward import ComposedForward, compose_forward, forward_message
from .label import (
    fetch_label_table,
    resolve_label_ids,
    merge_archive,
    modify_messages,
)

__all__ = [
    "get_gmail_service",
    "MessagePart",
    "AttachmentDescriptor",
    "BodySelection",
    "get_header",
    "select_body",
    "collect_attachments",
    "ComposedForward",
    "compose_forward",
    "forward_message",
    "fetch_label_table",
    "resolve_label_ids",
    "merge_archive",
    "modify_messages",
]
