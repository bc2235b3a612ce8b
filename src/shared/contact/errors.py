"""Contact form rejection and failure types."""

from typing import Optional

from fastapi import status


class ContactFormError(Exception):
    """Base error; carries the message key and HTTP status for the JSON response."""

    message_key = "general_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: Optional[str] = None, **context):
        self.context = context
        self.message = message
        super().__init__(message or self.message_key)


class MethodNotAllowed(ContactFormError):
    message_key = "invalid_method"
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class MissingField(ContactFormError):
    message_key = "missing_field"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message, field=field)


class InvalidEmail(ContactFormError):
    message_key = "invalid_email"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidPhone(ContactFormError):
    message_key = "invalid_phone"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidInquiryType(ContactFormError):
    message_key = "invalid_inquiry"
    status_code = status.HTTP_400_BAD_REQUEST


class SubjectTooLong(ContactFormError):
    message_key = "subject_too_long"
    status_code = status.HTTP_400_BAD_REQUEST


class MessageTooLong(ContactFormError):
    message_key = "message_too_long"
    status_code = status.HTTP_400_BAD_REQUEST


class SpamDetected(ContactFormError):
    message_key = "spam_detected"
    status_code = status.HTTP_400_BAD_REQUEST


class RateLimited(ContactFormError):
    message_key = "rate_limit"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS


class EmailSendFailure(ContactFormError):
    message_key = "email_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class GeneralError(ContactFormError):
    message_key = "general_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
