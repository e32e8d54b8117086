"""Gmail label mutation: name resolution, archive handling, batch modify."""

import logging
from typing import Dict, Any, Iterable, List, Optional

from ..exceptions import MailOperationError, ValidationError
from ..timing import time_api_call
from .service import get_gmail_service

logger = logging.getLogger(__name__)

# System label removed when archiving
INBOX_LABEL_ID = "INBOX"


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma-separated option value, trimming items and dropping blanks."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@time_api_call
def fetch_label_table(service: Any) -> Dict[str, str]:
    """
    Fetch the mailbox's labels as a name -> ID mapping.

    Names are case-sensitive, exactly as returned by the API.
    """
    results = service.users().labels().list(userId='me').execute()
    return {
        label['name']: label['id']
        for label in results.get('labels', [])
        if label.get('name') and label.get('id')
    }


def resolve_label_ids(names: Iterable[str], table: Dict[str, str]) -> List[str]:
    """
    Map label names to label IDs.

    Names found in `table` are replaced by their ID. Anything else is passed
    through unchanged, so callers can give an ID (e.g. "Label_12", "STARRED")
    where a name is expected. Order is preserved.
    """
    resolved = []
    for name in names:
        name = name.strip()
        if not name:
            continue
        label_id = table.get(name)
        if label_id is None:
            logger.debug(f"Label '{name}' not in label table, using it as an ID")
            label_id = name
        resolved.append(label_id)
    return resolved


def merge_archive(remove_ids: List[str], archive: bool) -> List[str]:
    """Return `remove_ids` with INBOX appended once when archiving."""
    merged = list(remove_ids)
    if archive and INBOX_LABEL_ID not in merged:
        merged.append(INBOX_LABEL_ID)
    return merged


@time_api_call
def batch_modify_labels(
    service: Any,
    message_ids: List[str],
    add_label_ids: List[str],
    remove_label_ids: List[str],
) -> None:
    """Apply one label change to many messages in a single batchModify call."""
    body = {
        'ids': message_ids,
        'addLabelIds': add_label_ids,
        'removeLabelIds': remove_label_ids,
    }
    service.users().messages().batchModify(userId='me', body=body).execute()


def modify_messages(
    message_ids: List[str],
    add_labels: List[str] = None,
    remove_labels: List[str] = None,
    archive: bool = False,
    profile: str = None,
    use_adc: bool = False,
    service: Any = None,
) -> Dict[str, Any]:
    """
    Add and remove labels on a set of Gmail messages.

    Args:
        message_ids: Gmail message IDs to modify
        add_labels: Label names (or IDs) to add
        remove_labels: Label names (or IDs) to remove
        archive: Also remove the message from the inbox
        profile: Optional profile name to use
        use_adc: Force use of Application Default Credentials
        service: Gmail service to use instead of building one from credentials

    Returns:
        Dict containing:
            - modified: the message IDs
            - count: number of messages
            - addedLabels: resolved label IDs added
            - removedLabels: resolved label IDs removed (INBOX included when archiving)
            - archived: whether archive was requested

    Raises:
        ValidationError: If no message IDs or no label change was given
        MailOperationError: If fetching labels or the modify call fails
    """
    message_ids = [m.strip() for m in message_ids or [] if m and m.strip()]
    add_labels = add_labels or []
    remove_labels = remove_labels or []

    if not message_ids:
        raise ValidationError("must specify --ids")
    if not add_labels and not remove_labels and not archive:
        raise ValidationError("must specify --add-label, --remove-label, and/or --archive")

    if service is None:
        service = get_gmail_service(profile=profile, use_adc=use_adc)

    try:
        table = fetch_label_table(service)
    except Exception as e:
        raise MailOperationError("fetching labels", e) from e

    add_ids = resolve_label_ids(add_labels, table)
    remove_ids = merge_archive(resolve_label_ids(remove_labels, table), archive)

    logger.debug(f"Modifying {len(message_ids)} message(s): add={add_ids} remove={remove_ids}")
    try:
        batch_modify_labels(service, message_ids, add_ids, remove_ids)
    except Exception as e:
        raise MailOperationError("modifying labels", e) from e

    logger.info(f"Modified labels on {len(message_ids)} message(s)")
    return {
        "modified": message_ids,
        "count": len(message_ids),
        "addedLabels": add_ids,
        "removedLabels": remove_ids,
        "archived": archive,
    }
