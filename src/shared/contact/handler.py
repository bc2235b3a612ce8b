"""Contact form submission handling: validation, spam filtering, rate limiting, email and logging."""

import time
import logging
from datetime import datetime
from typing import Callable, Mapping, Optional, Tuple

from fastapi import status

from src.shared.contact.config import ContactSettings
from src.shared.contact.email_utils import SmtpMailer, compose_admin_email, compose_auto_reply
from src.shared.contact.errors import (
    ContactFormError,
    EmailSendFailure,
    GeneralError,
    InvalidEmail,
    InvalidInquiryType,
    InvalidPhone,
    MessageTooLong,
    MethodNotAllowed,
    MissingField,
    RateLimited,
    SpamDetected,
    SubjectTooLong,
)
from src.shared.contact.input_validation import (
    find_spam_keyword,
    is_valid_email,
    is_valid_inquiry_type,
    is_valid_phone,
    missing_required_field,
    sanitize_text,
)
from src.shared.contact.rate_limit import RateLimitStore
from src.shared.contact.schemas import ContactResponse, Submission
from src.shared.contact.submission_log import TIMESTAMP_FORMAT, SubmissionLog

logger = logging.getLogger(__name__)


class ContactFormHandler:
    """
    Processes one contact form request at a time.

    Holds no per-request state; the rate limit store is the only state that
    outlives a request. Every rejection is returned as a ContactResponse with
    success=False, never raised to the caller.
    """

    def __init__(
        self,
        settings: ContactSettings,
        rate_limit_store: RateLimitStore,
        mailer: Optional[SmtpMailer] = None,
        submission_log: Optional[SubmissionLog] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.rate_limit_store = rate_limit_store
        self.mailer = mailer or SmtpMailer(settings)
        self.submission_log = submission_log or SubmissionLog(settings)
        self.clock = clock

    def _local_time(self, ts: float) -> datetime:
        return datetime.fromtimestamp(ts, tz=self.settings.local_timezone())

    def _response(self, success: bool, message: str, now: float) -> ContactResponse:
        return ContactResponse(
            success=success,
            message=message,
            data=None,
            timestamp=self._local_time(now).strftime(TIMESTAMP_FORMAT),
        )

    def handle(self, method: str, form: Mapping[str, str], client_ip: str = "unknown",
               user_agent: str = "Unknown") -> Tuple[ContactResponse, int]:
        """
        Validate and process a contact form request.

        Args:
            method: HTTP method of the request
            form: Submitted form fields (camelCase names)
            client_ip: Requesting client IP, used as the rate limit key
            user_agent: Requesting client user agent

        Returns:
            Tuple of (response body, HTTP status code)
        """
        now = self.clock()
        try:
            self._process(method, form, client_ip or "unknown", user_agent or "Unknown", now)
        except ContactFormError as e:
            message = e.message or self.settings.error_message(e.message_key, **e.context)
            return self._response(False, message, now), e.status_code
        except Exception as e:
            logger.error(f"Contact form error: {str(e)}", exc_info=True)
            error = GeneralError()
            return self._response(False, self.settings.error_message(error.message_key), now), error.status_code

        return self._response(True, self.settings.success_message, now), status.HTTP_200_OK

    def validate(self, form: Mapping[str, str]) -> Submission:
        """
        Run the field checks and build a sanitized submission.

        Raises:
            ContactFormError subclass for the first failing check
        """
        missing = missing_required_field(form, self.settings.required_fields)
        if missing:
            raise MissingField(missing)

        submission = Submission(
            first_name=sanitize_text(form.get("firstName")),
            last_name=sanitize_text(form.get("lastName")),
            email=sanitize_text(form.get("email")),
            phone=sanitize_text(form.get("phone")),
            company=sanitize_text(form.get("company")),
            inquiry_type=sanitize_text(form.get("inquiryType")),
            subject=sanitize_text(form.get("subject")),
            message=sanitize_text(form.get("message")),
            newsletter="newsletter" in form,
        )

        if not is_valid_email(submission.email):
            raise InvalidEmail()

        if not is_valid_phone(submission.phone):
            raise InvalidPhone()

        if not is_valid_inquiry_type(submission.inquiry_type, self.settings.inquiry_types):
            raise InvalidInquiryType()

        # Limits apply to what the visitor typed, not the escaped text
        if len(str(form.get("subject", "")).strip()) > self.settings.max_subject_length:
            raise SubjectTooLong()
        if len(str(form.get("message", "")).strip()) > self.settings.max_message_length:
            raise MessageTooLong()

        if self.settings.enable_spam_filter:
            keyword = find_spam_keyword(submission.subject, submission.message, self.settings.spam_keywords)
            if keyword:
                logger.info(f"Spam keyword '{keyword}' found in submission from {submission.email}")
                raise SpamDetected()

        return submission

    def _process(self, method: str, form: Mapping[str, str], client_ip: str, user_agent: str, now: float) -> None:
        if (method or "").upper() != "POST":
            raise MethodNotAllowed()

        submission = self.validate(form)

        if not self.rate_limit_store.hit(client_ip, now, self.settings.rate_limit_seconds):
            logger.info(f"Rate limit hit for {client_ip}")
            raise RateLimited()

        submitted_at = self._local_time(now)
        admin_email = compose_admin_email(self.settings, submission, client_ip, user_agent, submitted_at)
        auto_reply = compose_auto_reply(self.settings, submission, submitted_at)

        if not self.mailer.send(admin_email):
            logger.error(f"Contact form error: Failed to send admin notification email for {submission.email}")
            raise EmailSendFailure()

        if not self.mailer.send(auto_reply):
            # Don't fail the submission
            logger.warning(f"Warning: Failed to send auto-reply email to {submission.email}")

        self.submission_log.log_submission(submission, client_ip, user_agent, submitted_at)

        if submission.newsletter:
            self.submission_log.log_newsletter_signup(submission, submitted_at)
