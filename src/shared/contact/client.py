"""
Client side of the contact form.

ContactFormController mirrors the website's form script: check the fields
locally, POST them once, and report the server's message. It is used by
the site's integration tests and by scripts that submit on a visitor's behalf.
"""

import re
import logging
from typing import Callable, Mapping, Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

CLIENT_REQUIRED_FIELDS = ["firstName", "lastName", "email", "inquiryType", "subject", "message"]
CLIENT_EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

DEFAULT_SUCCESS_MESSAGE = "Thank you for your message. We will get back to you soon!"
DEFAULT_ERROR_MESSAGE = "There was an error sending your message. Please try again."


class FormFeedback(BaseModel):
    """Message shown under the form. kind is 'success' or 'error'."""
    kind: str
    message: str

    @property
    def is_success(self) -> bool:
        return self.kind == "success"


def field_label(field: str) -> str:
    """firstName -> 'first name'"""
    return re.sub(r'([A-Z])', r' \1', field).lower()


def validate_form(fields: Mapping[str, str]) -> Optional[str]:
    """
    Local checks run before anything is sent.

    Returns:
        Message for the first failing check, or None if the form can be submitted
    """
    for field in CLIENT_REQUIRED_FIELDS:
        value = fields.get(field)
        if not value or not str(value).strip():
            return f"Please fill in the {field_label(field)} field."

    if not CLIENT_EMAIL_PATTERN.fullmatch(str(fields.get("email", ""))):
        return "Please enter a valid email address."

    if not fields.get("privacy"):
        return "Please agree to the privacy policy and terms of service."

    return None


class ContactFormController:
    """Submits contact form fields to the contact endpoint."""

    def __init__(self, endpoint: str, client: Optional[httpx.Client] = None,
                 on_feedback: Optional[Callable[[FormFeedback], None]] = None,
                 timeout: float = 30.0):
        self.endpoint = endpoint
        self.client = client or httpx.Client(timeout=timeout)
        self.on_feedback = on_feedback
        self.submitting = False
        self.last_feedback: Optional[FormFeedback] = None

    def _show(self, kind: str, message: str) -> FormFeedback:
        feedback = FormFeedback(kind=kind, message=message)
        self.last_feedback = feedback
        if self.on_feedback:
            self.on_feedback(feedback)
        return feedback

    def submit(self, fields: Mapping[str, str]) -> FormFeedback:
        """
        Validate locally, then POST the fields once. No retries.
        submitting is True only while the request is in flight.
        """
        self.submitting = True
        try:
            error = validate_form(fields)
            if error:
                return self._show("error", error)

            try:
                response = self.client.post(self.endpoint, data=dict(fields))
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Contact form request failed: {str(e)}")
                return self._show("error", DEFAULT_ERROR_MESSAGE)

            if not isinstance(data, dict):
                return self._show("error", DEFAULT_ERROR_MESSAGE)
            if data.get("success"):
                return self._show("success", data.get("message") or DEFAULT_SUCCESS_MESSAGE)
            return self._show("error", data.get("message") or DEFAULT_ERROR_MESSAGE)
        finally:
            self.submitting = False

    def close(self) -> None:
        self.client.close()
