"""Email composition and SMTP delivery tests."""

import smtplib
from datetime import datetime

import pytest

from src.shared.contact import email_utils
from src.shared.contact.config import ContactSettings
from src.shared.contact.email_utils import (
    EmailMessageSpec,
    SmtpMailer,
    compose_admin_email,
    compose_auto_reply,
)
from src.shared.contact.schemas import Submission

SUBMITTED_AT = datetime(2025, 3, 5, 15, 7, 9)


@pytest.fixture
def submission():
    return Submission(
        firstName="Jane",
        lastName="Doe",
        email="jane.doe@studiomail.com",
        inquiryType="interview",
        subject="Podcast episode",
        message="Would you join our podcast?",
    )


def test_admin_email_lists_all_fields(submission):
    spec = compose_admin_email(ContactSettings(), submission, "203.0.113.5", "Mozilla/5.0", SUBMITTED_AT)
    assert spec.to == "admin@johnnydeppportfolio.com"
    assert spec.subject == "New Contact Form Submission - Interview Request"
    assert spec.reply_to == "jane.doe@studiomail.com"
    assert "Name: Jane Doe" in spec.body
    assert "Phone: Not provided" in spec.body
    assert "Company: Not provided" in spec.body
    assert "Would you join our podcast?" in spec.body
    assert "Newsletter Subscription: No" in spec.body
    assert "Submitted: 2025-03-05 15:07:09" in spec.body
    assert "IP Address: 203.0.113.5" in spec.body
    assert "User Agent: Mozilla/5.0" in spec.body
    assert spec.cc == []


def test_admin_email_copies_backup_admin(submission):
    settings = ContactSettings(backup_admin_email="backup@johnnydeppportfolio.com")
    spec = compose_admin_email(settings, submission, "203.0.113.5", "Mozilla/5.0", SUBMITTED_AT)
    assert spec.cc == ["backup@johnnydeppportfolio.com"]


def test_auto_reply_acknowledges_submission(submission):
    spec = compose_auto_reply(ContactSettings(), submission, SUBMITTED_AT)
    assert spec.to == "jane.doe@studiomail.com"
    assert spec.subject == "Thank you for contacting Johnny Depp Portfolio"
    assert spec.body.lstrip().startswith("Dear Jane,")
    assert "regarding 'Podcast episode'" in spec.body
    assert "- Type: Interview Request" in spec.body
    assert "- Submitted: March 5, 2025 at 3:07 PM" in spec.body
    assert spec.reply_to is None


class FakeSMTP:
    instances = []
    fail_with = None

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.sent = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def send_message(self, msg, to_addrs=None):
        if FakeSMTP.fail_with:
            raise FakeSMTP.fail_with
        self.sent.append((msg, to_addrs))


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.instances = []
    FakeSMTP.fail_with = None
    monkeypatch.setattr(email_utils.smtplib, "SMTP", FakeSMTP)
    return FakeSMTP


def test_mailer_sends_plain_text_with_headers(fake_smtp):
    settings = ContactSettings(smtp_host="mail.studio.test", smtp_user="mailer", smtp_password="secret")
    spec = EmailMessageSpec(
        to="admin@johnnydeppportfolio.com",
        subject="Hello",
        body="Body text",
        reply_to="jane.doe@studiomail.com",
        cc=["backup@johnnydeppportfolio.com"],
    )
    assert SmtpMailer(settings).send(spec) is True

    server = fake_smtp.instances[0]
    assert server.host == "mail.studio.test"
    assert server.calls == ["starttls", ("login", "mailer")]
    msg, to_addrs = server.sent[0]
    assert msg["From"] == "noreply@johnnydeppportfolio.com"
    assert msg["Reply-To"] == "jane.doe@studiomail.com"
    assert msg["Cc"] == "backup@johnnydeppportfolio.com"
    assert msg.get_content_type() == "text/plain"
    assert to_addrs == ["admin@johnnydeppportfolio.com", "backup@johnnydeppportfolio.com"]


def test_mailer_skips_login_without_credentials(fake_smtp):
    settings = ContactSettings(smtp_starttls=False)
    SmtpMailer(settings).send(EmailMessageSpec(to="a@studiomail.com", subject="s", body="b"))
    assert fake_smtp.instances[0].calls == []


def test_mailer_reports_failure(fake_smtp):
    fake_smtp.fail_with = smtplib.SMTPRecipientsRefused({})
    sent = SmtpMailer(ContactSettings()).send(EmailMessageSpec(to="a@studiomail.com", subject="s", body="b"))
    assert sent is False


def test_mailer_reports_connection_error(monkeypatch):
    def refuse(*args, **kwargs):
        raise ConnectionRefusedError("no server")

    monkeypatch.setattr(email_utils.smtplib, "SMTP", refuse)
    sent = SmtpMailer(ContactSettings()).send(EmailMessageSpec(to="a@studiomail.com", subject="s", body="b"))
    assert sent is False
