"""
Input validation and sanitization for contact form fields.
Escapes markup before any field is used, then checks format rules.
"""

import re
import html
from typing import Iterable, Mapping, Optional

from email_validator import EmailNotValidError, validate_email


# Loose international pattern, applied after stripping everything but digits and '+'
PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{0,15}$')
PHONE_STRIP_PATTERN = re.compile(r'[^\d+]')


def sanitize_text(text: Optional[str]) -> str:
    """
    Sanitize text input to prevent XSS attacks.

    Args:
        text: Input text to sanitize

    Returns:
        Trimmed text with HTML entities escaped
    """
    if not text:
        return ""

    # Strip whitespace, then escape HTML
    return html.escape(text.strip(), quote=True)


def missing_required_field(form: Mapping[str, str], required_fields: Iterable[str]) -> Optional[str]:
    """
    Find the first required field that is absent or blank.

    Args:
        form: Submitted form fields
        required_fields: Field names in the order they should be checked

    Returns:
        Name of the first missing field, or None if all are present
    """
    for field in required_fields:
        value = form.get(field)
        if value is None or not str(value).strip():
            return field
    return None


def is_valid_email(email: Optional[str]) -> bool:
    """Check an address against the standard email grammar (no DNS lookups)."""
    if not email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def is_valid_phone(phone: Optional[str]) -> bool:
    """Phone is optional; a non-empty value must look like an international number."""
    if not phone:
        return True
    digits = PHONE_STRIP_PATTERN.sub('', phone)
    return bool(PHONE_PATTERN.match(digits))


def is_valid_inquiry_type(inquiry_type: str, valid_types: Iterable[str]) -> bool:
    return inquiry_type in valid_types


def find_spam_keyword(subject: str, message: str, keywords: Iterable[str]) -> Optional[str]:
    """
    Look for a spam keyword in the subject and message.
    Matching is a case-insensitive substring test.

    Returns:
        The first matching keyword, or None
    """
    text = f"{message} {subject}".lower()
    for keyword in keywords:
        if keyword and keyword.lower() in text:
            return keyword
    return None
