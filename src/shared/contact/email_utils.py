"""Email composition and delivery for contact form submissions."""

import smtplib
import logging
import platform
from datetime import datetime
from email.mime.text import MIMEText
from typing import List, Optional

from pydantic import BaseModel, Field

from src.shared.contact.config import ContactSettings
from src.shared.contact.schemas import Submission

logger = logging.getLogger(__name__)


class EmailMessageSpec(BaseModel):
    """A plain-text email ready to be sent."""
    to: str
    subject: str
    body: str
    reply_to: Optional[str] = None
    cc: List[str] = Field(default_factory=list)


def compose_admin_email(settings: ContactSettings, submission: Submission, client_ip: str,
                        user_agent: str, submitted_at: datetime) -> EmailMessageSpec:
    """
    Build the notification sent to the site administrator.

    Args:
        settings: Contact settings (admin address, site name, inquiry labels)
        submission: Sanitized submission
        client_ip: Requesting client IP
        user_agent: Requesting client user agent
        submitted_at: Local submission time

    Returns:
        EmailMessageSpec addressed to the admin, with Reply-To set to the submitter
    """
    label = settings.inquiry_types.get(submission.inquiry_type, "Unknown")

    body = f"""
New contact form submission received from the {settings.site_name} website.

CONTACT DETAILS:
Name: {submission.full_name}
Email: {submission.email}
Phone: {submission.phone or 'Not provided'}
Company: {submission.company or 'Not provided'}

INQUIRY DETAILS:
Type: {label}
Subject: {submission.subject}

MESSAGE:
{submission.message}

ADDITIONAL INFO:
Newsletter Subscription: {'Yes' if submission.newsletter else 'No'}
Submitted: {submitted_at.strftime('%Y-%m-%d %H:%M:%S')}
IP Address: {client_ip}
User Agent: {user_agent}
"""

    cc = [settings.backup_admin_email] if settings.backup_admin_email else []
    return EmailMessageSpec(
        to=settings.admin_email,
        subject=f"New Contact Form Submission - {label}",
        body=body,
        reply_to=submission.email,
        cc=cc,
    )


def compose_auto_reply(settings: ContactSettings, submission: Submission,
                       submitted_at: datetime) -> EmailMessageSpec:
    """Build the acknowledgment sent back to the submitter."""
    label = settings.inquiry_types.get(submission.inquiry_type, "Unknown")
    # e.g. "March 5, 2025 at 3:07 PM"
    hour = submitted_at.hour % 12 or 12
    when = (
        f"{submitted_at.strftime('%B')} {submitted_at.day}, {submitted_at.year} "
        f"at {hour}:{submitted_at.strftime('%M %p')}"
    )

    body = f"""
Dear {submission.first_name},

Thank you for reaching out through the {settings.site_name} website. We have received your message regarding '{submission.subject}' and appreciate your interest.

Your inquiry details:
- Type: {label}
- Subject: {submission.subject}
- Submitted: {when}

We aim to respond to all professional inquiries within 5-7 business days. Please note that due to high volume, not all requests can be accommodated.

If your inquiry is urgent, please ensure you have provided all relevant details in your original message.

Thank you for your patience and interest.

Best regards,
{settings.site_name} Team

---
This is an automated response. Please do not reply to this email.
"""

    return EmailMessageSpec(
        to=submission.email,
        subject=f"Thank you for contacting {settings.site_name}",
        body=body,
    )


class SmtpMailer:
    """Sends plain-text messages through the configured SMTP server."""

    def __init__(self, settings: ContactSettings):
        self.settings = settings

    def send(self, spec: EmailMessageSpec) -> bool:
        """
        Send one message.

        Returns:
            True if the server accepted the message, False otherwise
        """
        try:
            msg = MIMEText(spec.body, "plain", "utf-8")
            msg["From"] = self.settings.from_email
            msg["To"] = spec.to
            if spec.cc:
                msg["Cc"] = ", ".join(spec.cc)
            if spec.reply_to:
                msg["Reply-To"] = spec.reply_to  # Allow admin to reply directly to the submitter
            msg["Subject"] = spec.subject
            msg["X-Mailer"] = f"Python/{platform.python_version()}"

            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port,
                              timeout=self.settings.smtp_timeout) as server:
                if self.settings.smtp_starttls:
                    server.starttls()  # Enable encryption
                if self.settings.smtp_user and self.settings.smtp_password:
                    server.login(self.settings.smtp_user, self.settings.smtp_password)
                server.send_message(msg, to_addrs=[spec.to] + list(spec.cc))

            logger.info(f"Email '{spec.subject}' sent to {spec.to}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {spec.to}: {str(e)}", exc_info=True)
            return False
