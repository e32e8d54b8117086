"""
Unit tests for composing and sending forwards.

compose_forward is exercised with hand-built trees and a fake fetcher;
forward_message with a MagicMock Gmail service.
"""

import base64
import logging
import types
from email import message_from_bytes, policy

import pytest

import gwmail.sdk.mail
from gwmail.sdk.exceptions import MailOperationError, ValidationError
from gwmail.sdk.mail.forward import compose_forward, forward_message
from gwmail.sdk.mail.mime import MessagePart

FORWARD_MARKER = "---------- Forwarded message ----------"


def parse(composed):
    return message_from_bytes(composed.mime_bytes, policy=policy.default)


@pytest.fixture
def simple_original(part, original_headers):
    """The original message from the forward scenario: plain 'Hello World', no attachments."""
    return part("text/plain", text="Hello World", headers=original_headers)


@pytest.fixture
def original_with_attachments(part, original_headers):
    return part("multipart/mixed", headers=original_headers, parts=[
        part("multipart/alternative", parts=[
            part("text/plain", text="See attached."),
            part("text/html", text="<p>See attached.</p>"),
        ]),
        part("application/pdf", filename="report.pdf", attachment_id="att-1"),
        part("image/png", filename="chart.png", attachment_id="att-2"),
    ])


class TestComposeForward:
    """Tests for building the outbound message."""

    def test_default_subject_and_preamble(self, simple_original):
        composed = compose_forward(MessagePart.from_api(simple_original), "recipient@example.com")
        parsed = parse(composed)

        assert composed.subject == "Fwd: Original Subject"
        assert parsed["Subject"] == "Fwd: Original Subject"
        assert parsed["To"] == "recipient@example.com"

        body = parsed.get_body(("plain",)).get_content()
        assert body.startswith(FORWARD_MARKER)
        assert "From: sender@example.com" in body
        assert "Date: Mon, 03 Feb 2026 10:00:00 -0800" in body
        assert "Subject: Original Subject" in body
        assert "To: me@example.com" in body
        assert body.endswith("\n\nHello World")

    def test_subject_override_is_used_verbatim(self, simple_original):
        composed = compose_forward(
            MessagePart.from_api(simple_original), "recipient@example.com",
            subject="Custom Forward Subject",
        )
        parsed = parse(composed)

        assert parsed["Subject"] == "Custom Forward Subject"
        assert "Original Subject" not in parsed["Subject"]
        assert "Subject: Original Subject" in composed.body_text

    def test_no_attachments_is_single_part(self, simple_original):
        composed = compose_forward(MessagePart.from_api(simple_original), "recipient@example.com")
        parsed = parse(composed)

        assert composed.boundary is None
        assert composed.attachment_count == 0
        assert parsed.get_content_type() == "text/plain"
        assert parsed.get_content_charset() == "utf-8"
        assert not parsed.is_multipart()

    def test_attachments_are_embedded_in_order(self, original_with_attachments):
        contents = {"att-1": b"%PDF-1.4 report", "att-2": b"\x89PNG chart"}
        fetched = []

        def fetch(attachment_id):
            fetched.append(attachment_id)
            return contents[attachment_id]

        composed = compose_forward(
            MessagePart.from_api(original_with_attachments), "recipient@example.com",
            fetch_attachment=fetch,
        )
        parsed = parse(composed)

        assert fetched == ["att-1", "att-2"]
        assert composed.attachment_count == 2
        assert parsed.get_content_type() == "multipart/mixed"

        parts = list(parsed.iter_parts())
        assert parts[0].get_content_type() == "text/plain"
        assert parts[0].get_content().startswith(FORWARD_MARKER)
        assert "See attached." in parts[0].get_content()

        attachments = list(parsed.iter_attachments())
        assert [a.get_filename() for a in attachments] == ["report.pdf", "chart.png"]
        assert [a.get_content_type() for a in attachments] == ["application/pdf", "image/png"]
        assert [a["Content-Transfer-Encoding"] for a in attachments] == ["base64", "base64"]
        assert attachments[0].get_content() == b"%PDF-1.4 report"
        assert attachments[1].get_content() == b"\x89PNG chart"

    def test_declared_boundary_matches_delimiters(self, original_with_attachments):
        composed = compose_forward(
            MessagePart.from_api(original_with_attachments), "recipient@example.com",
            fetch_attachment=lambda attachment_id: b"data",
        )
        parsed = parse(composed)
        boundary = composed.boundary.encode("ascii")

        assert parsed.get_boundary() == composed.boundary
        assert composed.mime_bytes.count(b"\r\n--" + boundary + b"\r\n") == 3
        assert composed.mime_bytes.rstrip().endswith(b"--" + boundary + b"--")

    def test_boundaries_are_unique_per_composition(self, original_with_attachments):
        tree = MessagePart.from_api(original_with_attachments)
        first = compose_forward(tree, "a@example.com", fetch_attachment=lambda _: b"x")
        second = compose_forward(tree, "a@example.com", fetch_attachment=lambda _: b"x")
        assert first.boundary != second.boundary

    def test_wire_format_uses_crlf(self, original_with_attachments):
        composed = compose_forward(
            MessagePart.from_api(original_with_attachments), "recipient@example.com",
            fetch_attachment=lambda attachment_id: b"data" * 100,
        )
        assert b"\n" not in composed.mime_bytes.replace(b"\r\n", b"")
        assert b"\r\n\r\n" in composed.mime_bytes

    def test_raw_is_url_safe_base64_of_wire_bytes(self, simple_original):
        composed = compose_forward(MessagePart.from_api(simple_original), "recipient@example.com")
        assert "+" not in composed.raw and "/" not in composed.raw
        assert base64.urlsafe_b64decode(composed.raw) == composed.mime_bytes

    def test_failed_attachment_is_skipped(self, original_with_attachments, caplog):
        def fetch(attachment_id):
            if attachment_id == "att-1":
                raise RuntimeError("attachment gone")
            return b"png"

        with caplog.at_level(logging.WARNING):
            composed = compose_forward(
                MessagePart.from_api(original_with_attachments), "recipient@example.com",
                fetch_attachment=fetch,
            )

        assert composed.attachment_count == 1
        assert composed.failed_attachments == ["report.pdf"]
        assert [a.get_filename() for a in parse(composed).iter_attachments()] == ["chart.png"]
        assert "report.pdf" in caplog.text

    def test_all_attachments_failing_yields_single_part(self, original_with_attachments):
        def fetch(attachment_id):
            raise RuntimeError("unavailable")

        composed = compose_forward(
            MessagePart.from_api(original_with_attachments), "recipient@example.com",
            fetch_attachment=fetch,
        )
        parsed = parse(composed)

        assert composed.attachment_count == 0
        assert composed.boundary is None
        assert composed.failed_attachments == ["report.pdf", "chart.png"]
        assert parsed.get_content_type() == "text/plain"
        assert parsed.get_content().startswith(FORWARD_MARKER)

    def test_inline_attachment_needs_no_fetch(self, part, original_headers, encode):
        original = part("multipart/mixed", headers=original_headers, parts=[
            part("text/plain", text="body"),
            part("application/json", filename="small.json", data=encode(b'{"a": 1}')),
        ])

        def fetch(attachment_id):
            raise AssertionError("inline attachments must not be fetched")

        composed = compose_forward(MessagePart.from_api(original), "r@example.com",
                                   fetch_attachment=fetch)
        [attachment] = parse(composed).iter_attachments()
        assert attachment.get_filename() == "small.json"
        assert attachment.get_content() == b'{"a": 1}'

    def test_html_only_original_is_quoted_raw(self, part, original_headers):
        original = part("multipart/alternative", headers=original_headers, parts=[
            part("text/html", text="<p>Hi</p>"),
        ])
        composed = compose_forward(MessagePart.from_api(original), "r@example.com")
        assert composed.body_text.endswith("\n\n<p>Hi</p>")

    def test_non_ascii_subject_round_trips(self, part):
        original = part("text/plain", text="Grüße", headers={"Subject": "Prüfung"})
        composed = compose_forward(MessagePart.from_api(original), "r@example.com")
        parsed = parse(composed)
        assert parsed["Subject"] == "Fwd: Prüfung"
        assert parsed.get_content().endswith("Grüße")

    def test_ascii_text_part_is_sent_unencoded(self, simple_original):
        composed = compose_forward(MessagePart.from_api(simple_original), "r@example.com")
        assert parse(composed)["Content-Transfer-Encoding"] == "7bit"
        assert b"\r\n\r\nHello World" in composed.mime_bytes

    def test_non_ascii_text_part_is_8bit_utf8(self, part):
        original = part("text/plain", text="Grüße", headers={"Subject": "Hi"})
        composed = compose_forward(MessagePart.from_api(original), "r@example.com")
        assert parse(composed)["Content-Transfer-Encoding"] == "8bit"
        assert "Grüße".encode("utf-8") in composed.mime_bytes

    def test_mime_version_only_on_top_level(self, original_with_attachments):
        composed = compose_forward(
            MessagePart.from_api(original_with_attachments), "r@example.com",
            fetch_attachment=lambda attachment_id: b"data",
        )
        parsed = parse(composed)

        assert composed.mime_bytes.count(b"MIME-Version:") == 1
        assert parsed["MIME-Version"] == "1.0"
        assert all(p["MIME-Version"] is None for p in parsed.iter_parts())
        assert next(parsed.iter_parts())["Content-Transfer-Encoding"] == "7bit"

    def test_missing_headers_leave_preamble_fields_empty(self, part):
        composed = compose_forward(MessagePart.from_api(part("text/plain", text="x")), "r@example.com")
        assert composed.subject == "Fwd: "
        assert "From: \n" in composed.body_text


class TestForwardMessage:
    """Tests for the fetch -> compose -> send orchestration."""

    def test_forward_sends_and_reports(self, gmail_service, simple_original):
        gmail_service.messages.get.return_value.execute.return_value = {
            "id": "m1", "threadId": "t0", "payload": simple_original,
        }

        result = forward_message("m1", "recipient@example.com", service=gmail_service)

        assert result == {
            "sent": "sent123",
            "threadId": "t1",
            "to": "recipient@example.com",
            "subject": "Fwd: Original Subject",
            "forwarded": "m1",
            "attachments": 0,
        }
        gmail_service.messages.get.assert_called_once_with(userId="me", id="m1", format="full")

        send_kwargs = gmail_service.messages.send.call_args.kwargs
        assert send_kwargs["userId"] == "me"
        sent = message_from_bytes(base64.urlsafe_b64decode(send_kwargs["body"]["raw"]),
                                  policy=policy.default)
        assert sent["To"] == "recipient@example.com"
        assert sent["Subject"] == "Fwd: Original Subject"

    def test_forward_fetches_attachments_from_source_message(
        self, gmail_service, stub_attachments, original_with_attachments
    ):
        gmail_service.messages.get.return_value.execute.return_value = {
            "id": "m1", "payload": original_with_attachments,
        }
        get_attachment = stub_attachments(gmail_service, {
            "att-1": b"pdf", "att-2": RuntimeError("HTTP 404"),
        })

        result = forward_message("m1", "r@example.com", subject="FYI", service=gmail_service)

        assert result["attachments"] == 1
        assert result["subject"] == "FYI"
        assert [c.kwargs for c in get_attachment.call_args_list] == [
            {"userId": "me", "messageId": "m1", "id": "att-1"},
            {"userId": "me", "messageId": "m1", "id": "att-2"},
        ]

    def test_inputs_are_trimmed(self, gmail_service, simple_original):
        gmail_service.messages.get.return_value.execute.return_value = {"payload": simple_original}
        result = forward_message("  m1 ", " r@example.com  ", service=gmail_service)
        assert result["forwarded"] == "m1"
        assert result["to"] == "r@example.com"

    @pytest.mark.parametrize("message_id,to,expected", [
        ("", "r@example.com", "message ID is required"),
        ("   ", "r@example.com", "message ID is required"),
        ("m1", "", "--to is required"),
        ("m1", "  ", "--to is required"),
    ])
    def test_validation_happens_before_any_call(self, gmail_service, message_id, to, expected):
        with pytest.raises(ValidationError, match=expected):
            forward_message(message_id, to, service=gmail_service)
        gmail_service.users.assert_not_called()

    def test_fetch_failure_names_phase(self, gmail_service):
        gmail_service.messages.get.return_value.execute.side_effect = RuntimeError("not found")

        with pytest.raises(MailOperationError) as exc:
            forward_message("m1", "r@example.com", service=gmail_service)

        assert str(exc.value) == "fetching message: not found"
        assert exc.value.phase == "fetching message"
        gmail_service.messages.send.assert_not_called()

    def test_send_failure_names_phase(self, gmail_service, simple_original):
        gmail_service.messages.get.return_value.execute.return_value = {"payload": simple_original}
        gmail_service.messages.send.return_value.execute.side_effect = RuntimeError("quota")

        with pytest.raises(MailOperationError) as exc:
            forward_message("m1", "r@example.com", service=gmail_service)

        assert str(exc.value) == "sending forwarded message: quota"
        assert isinstance(exc.value.__cause__, RuntimeError)

    @pytest.mark.parametrize("subject_header,to", [
        ("Hello\r\nBcc: x@example.com", "r@example.com"),
        ("Hello", "r@example.com\nBcc: x@example.com"),
    ])
    def test_header_injection_fails_while_composing(self, gmail_service, part, subject_header, to):
        original = part("text/plain", text="body", headers={"Subject": subject_header})
        gmail_service.messages.get.return_value.execute.return_value = {"payload": original}

        with pytest.raises(MailOperationError) as exc:
            forward_message("m1", to, service=gmail_service)

        assert exc.value.phase == "composing message"
        assert str(exc.value).startswith("composing message: ")
        gmail_service.messages.send.assert_not_called()

    def test_forward_submodule_is_not_shadowed(self):
        assert isinstance(gwmail.sdk.mail.forward, types.ModuleType)
        assert gwmail.sdk.mail.forward.forward_message is forward_message

    def test_service_is_built_from_profile_when_not_given(self, monkeypatch, gmail_service, simple_original):
        gmail_service.messages.get.return_value.execute.return_value = {"payload": simple_original}
        calls = []

        def fake_get_gmail_service(profile=None, use_adc=False):
            calls.append((profile, use_adc))
            return gmail_service

        monkeypatch.setattr("gwmail.sdk.mail.forward.get_gmail_service", fake_get_gmail_service)
        forward_message("m1", "r@example.com", profile="work")
        assert calls == [("work", False)]
