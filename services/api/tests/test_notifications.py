"""
Tests for the operator e-mail summary.

Run with: pytest tests/test_notifications.py -v
"""
import asyncio
from email import message_from_string

from core import notifications
from core.email_sender import build_message
from core.notifications import build_summary, notify_operator, render_html, render_text
from schemas import ClientSubmissionCreate


def _record(**overrides):
    data = {
        "years_of_experience": 8,
        "services": [{
            "name": "Roof <repair>",
            "description": "Leaks & patches",
            "picture_urls": ["https://img/s1", "https://img/s2"],
        }],
        "projects": [{
            "title": "Oak Ave",
            "description": "Tear-off",
            "before_after": True,
            "before_picture_urls": ["https://img/before"],
            "after_picture_urls": [],
        }],
        "has_installation_process": True,
        "installation_process_services": [{"service_name": "Shingles", "steps": ["Strip", "Lay felt", "Nail"]}],
    }
    data.update(overrides)
    record = ClientSubmissionCreate(**data).model_dump(mode="json")
    record.update(id="sub-42", created_at="2024-05-01T12:00:00+00:00")
    return record


class TestSummary:
    def test_covers_every_section(self):
        titles = [b.title for b in build_summary(_record())]
        assert titles[0] == "Basic Information"
        for title in ("Services", "Previous Projects", "Installation Process",
                      "Warranty Coverage", "Insurance Coverage", "Notes/Additional Features"):
            assert title in titles

    def test_text_body(self):
        text = render_text(_record(), "sub-42")

        assert "Submission ID: sub-42" in text
        assert "Years of Experience: 8 years" in text
        assert "Business Email Address: Not provided" in text
        assert "Picture 1: https://img/s1" in text
        assert "Picture 2: https://img/s2" in text
        assert "Before Picture 1: https://img/before" in text
        assert "After Pictures: No after pictures provided" in text
        assert "1. Strip" in text and "3. Nail" in text
        assert "No financing options added" in text

    def test_html_body_escapes_and_links(self):
        body = render_html(_record(), "sub-42")

        assert "Roof &lt;repair&gt;" in body
        assert "Leaks &amp; patches" in body
        assert "<repair>" not in body
        assert '<a href="https://img/s1">' in body
        assert "<ol><li>Strip</li><li>Lay felt</li><li>Nail</li></ol>" in body

    def test_empty_submission(self):
        text = render_text(_record(services=[], projects=[], installation_process_services=[]))
        assert "No services added" in text
        assert "No projects added" in text


class TestMessage:
    def test_multipart_alternative(self):
        msg = build_message(
            to_email="ops@example.com",
            subject=notifications.SUBJECT,
            body_text="plain",
            body_html="<p>html</p>",
            from_email="form@example.com",
            from_name="Client Intake Form",
            cc_emails=["OPS@example.com", " boss@example.com ", ""],
        )
        parsed = message_from_string(msg.as_string())

        assert parsed.get_content_type() == "multipart/alternative"
        assert [p.get_content_type() for p in parsed.get_payload()] == ["text/plain", "text/html"]
        assert parsed["Cc"] == "boss@example.com"
        assert parsed["Subject"] == "New Client Information Form Submission"


class TestNotifyOperator:
    def test_skipped_without_smtp(self, monkeypatch):
        settings = notifications.get_settings()
        monkeypatch.setattr(settings, "smtp_user", "")
        assert asyncio.run(notify_operator(_record())) is False

    def test_sends_both_bodies(self, monkeypatch):
        settings = notifications.get_settings()
        monkeypatch.setattr(settings, "smtp_user", "form@example.com")
        monkeypatch.setattr(settings, "smtp_password", "secret")
        monkeypatch.setattr(settings, "operator_email", "ops@example.com")
        sent = {}

        async def fake_send_email(**kwargs):
            sent.update(kwargs)
            return True

        monkeypatch.setattr(notifications, "send_email", fake_send_email)

        assert asyncio.run(notify_operator(_record())) is True
        assert sent["to_email"] == "ops@example.com"
        assert sent["subject"] == notifications.SUBJECT
        assert "Picture 1: https://img/s1" in sent["body_text"]
        assert "<h2>" in sent["body_html"]

    def test_send_failure_reported(self, monkeypatch):
        settings = notifications.get_settings()
        monkeypatch.setattr(settings, "smtp_user", "form@example.com")
        monkeypatch.setattr(settings, "smtp_password", "secret")
        monkeypatch.setattr(settings, "operator_email", "ops@example.com")

        async def failing_send_email(**kwargs):
            return False

        monkeypatch.setattr(notifications, "send_email", failing_send_email)
        assert asyncio.run(notify_operator(_record())) is False
