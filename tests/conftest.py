"""
Shared fixtures for gwmail tests.

This module provides:
- Builders for Gmail API payload dicts (the `format=full` MIME tree)
- A MagicMock Gmail service with the call chains the SDK uses
- An isolated config directory so tests never touch ~/.config/gwmail
"""

import base64
from typing import Any, Dict, List, Optional
from unittest.mock import MagicMock

import pytest
import yaml


def web64(data) -> str:
    """Encode text or bytes the way the Gmail API does (URL-safe base64)."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.urlsafe_b64encode(data).decode("ascii")


def build_part(
    mime_type: str = "",
    text: Optional[str] = None,
    data: Optional[str] = None,
    filename: str = "",
    attachment_id: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    parts: Optional[List[dict]] = None,
) -> Dict[str, Any]:
    """Build one Gmail payload part; `text` is encoded, `data` is used verbatim."""
    body: Dict[str, Any] = {}
    if text is not None:
        body["data"] = web64(text)
    if data is not None:
        body["data"] = data
    if attachment_id:
        body["attachmentId"] = attachment_id
    part: Dict[str, Any] = {
        "mimeType": mime_type,
        "filename": filename,
        "headers": [{"name": k, "value": v} for k, v in (headers or {}).items()],
        "body": body,
    }
    if parts is not None:
        part["parts"] = parts
    return part


ORIGINAL_HEADERS = {
    "From": "sender@example.com",
    "To": "me@example.com",
    "Subject": "Original Subject",
    "Date": "Mon, 03 Feb 2026 10:00:00 -0800",
}


@pytest.fixture
def part():
    """Factory fixture for Gmail payload parts (see build_part)."""
    return build_part


@pytest.fixture
def encode():
    return web64


@pytest.fixture
def original_headers():
    return dict(ORIGINAL_HEADERS)


@pytest.fixture
def gmail_service():
    """
    A MagicMock standing in for a googleapiclient Gmail service.

    Returns the service; `service.messages` is the users().messages()
    resource for configuring return values. send() succeeds by default.
    """
    service = MagicMock()
    messages = service.users.return_value.messages.return_value
    messages.send.return_value.execute.return_value = {
        "id": "sent123",
        "threadId": "t1",
        "labelIds": ["SENT"],
    }
    service.messages = messages
    return service


@pytest.fixture
def stub_attachments():
    """
    Configure attachments().get() on a fake service.

    Usage:
        stub_attachments(service, {"att-1": b"bytes", "att-2": RuntimeError("gone")})
    Exceptions are raised from execute(); bytes are returned URL-safe encoded.
    """
    def configure(service, contents: Dict[str, Any]):
        def get(userId, messageId, id):
            request = MagicMock()
            value = contents[id]
            if isinstance(value, Exception):
                request.execute.side_effect = value
            else:
                request.execute.return_value = {"data": web64(value), "size": len(value)}
            return request

        service.messages.attachments.return_value.get.side_effect = get
        return service.messages.attachments.return_value.get

    return configure


@pytest.fixture
def isolated_config(tmp_path, monkeypatch):
    """
    Point gwmail at a throwaway config file.

    Returns a dict with paths and helpers to write config and profiles.
    """
    config_file = tmp_path / "config.yaml"
    monkeypatch.setenv("GWMAIL_CONFIG_FILE", str(config_file))

    def write_config(data: dict):
        with open(config_file, "w") as f:
            yaml.safe_dump(data, f)

    def create_profile(name: str, scopes: Optional[List[str]] = None, email: str = None):
        profile_dir = tmp_path / "profiles" / name
        profile_dir.mkdir(parents=True, exist_ok=True)
        if name != "adc":
            (profile_dir / "user_token.json").write_text("{}")
        with open(profile_dir / "profile.yaml", "w") as f:
            yaml.safe_dump({"email": email, "validated_scopes": scopes or []}, f)
        return profile_dir

    return {
        "config_file": config_file,
        "write_config": write_config,
        "create_profile": create_profile,
    }
