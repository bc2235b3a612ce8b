"""Configuration for the contact form service.

All settings are fixed at process start. A single ContactSettings instance is
built by load_settings() and handed to the handler, store and mailer.
"""

import os
import logging
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from src.shared.contact.input_validation import is_valid_email

logger = logging.getLogger(__name__)


INQUIRY_TYPE_LABELS: Dict[str, str] = {
    "film-project": "Film Project",
    "collaboration": "Creative Collaboration",
    "interview": "Interview Request",
    "endorsement": "Endorsement Opportunity",
    "event": "Event Appearance",
    "other": "Other",
}

SPAM_KEYWORDS: List[str] = [
    "viagra", "casino", "lottery", "winner", "congratulations",
    "million dollars", "inheritance", "beneficiary", "urgent",
    "click here now", "limited time offer", "act now",
]

REQUIRED_FIELDS: List[str] = [
    "firstName", "lastName", "email", "inquiryType",
    "subject", "message", "privacy",
]

SUCCESS_MESSAGE = (
    "Thank you for your message! We will review your inquiry "
    "and respond within 5-7 business days."
)


def default_error_messages(max_message_length: int = 5000, max_subject_length: int = 200) -> Dict[str, str]:
    """Build the user-facing error messages, keyed by error type."""
    return {
        "invalid_method": "Invalid request method. Only POST requests are allowed.",
        "missing_field": "Required field '{field}' is missing or empty.",
        "invalid_email": "Please provide a valid email address.",
        "invalid_phone": "Please provide a valid phone number or leave it empty.",
        "invalid_inquiry": "Please select a valid inquiry type.",
        "spam_detected": "Your message appears to contain spam content.",
        "rate_limit": "Please wait before submitting another message.",
        "message_too_long": f"Your message is too long. Please keep it under {max_message_length} characters.",
        "subject_too_long": f"Your subject is too long. Please keep it under {max_subject_length} characters.",
        "email_failed": "There was an error processing your request. Please try again or contact us directly.",
        "general_error": "An unexpected error occurred. Please try again later.",
    }


class ContactSettings(BaseModel):
    """Settings for the contact form handler and its collaborators."""

    # Email
    admin_email: str = "admin@johnnydeppportfolio.com"
    from_email: str = "noreply@johnnydeppportfolio.com"
    backup_admin_email: str = ""
    site_name: str = "Johnny Depp Portfolio"

    # SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_starttls: bool = True
    smtp_timeout: float = 30.0

    # Security
    rate_limit_seconds: int = 60
    rate_limit_retention_seconds: int = 24 * 60 * 60
    rate_limit_backend: str = "file"  # 'file', 'memory' or 'database'
    rate_limit_database_url: Optional[str] = None
    max_message_length: int = 5000
    max_subject_length: int = 200
    enable_logging: bool = True
    enable_spam_filter: bool = True
    spam_keywords: List[str] = Field(default_factory=lambda: list(SPAM_KEYWORDS))
    trust_forwarded_for: bool = False

    # Validation
    inquiry_types: Dict[str, str] = Field(default_factory=lambda: dict(INQUIRY_TYPE_LABELS))
    required_fields: List[str] = Field(default_factory=lambda: list(REQUIRED_FIELDS))

    # Responses
    success_message: str = SUCCESS_MESSAGE
    error_messages: Dict[str, str] = Field(default_factory=default_error_messages)

    # Files
    log_dir: Path = Path("logs")
    log_retention_days: int = 30

    # Runtime
    timezone: str = "UTC"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    enable_scheduler: bool = True
    maintenance_interval_seconds: int = 3600

    @property
    def contact_log_file(self) -> Path:
        return self.log_dir / "contact_submissions.log"

    @property
    def newsletter_log_file(self) -> Path:
        return self.log_dir / "newsletter_signups.log"

    @property
    def rate_limit_file(self) -> Path:
        return self.log_dir / "rate_limit.json"

    @property
    def error_log_file(self) -> Path:
        return self.log_dir / "errors.log"

    def local_timezone(self) -> tzinfo:
        """Resolve the configured timezone name."""
        if self.timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.timezone)

    def error_message(self, key: str, **kwargs) -> str:
        """Look up an error message, falling back to the general error."""
        template = self.error_messages.get(key) or self.error_messages.get(
            "general_error", "An unexpected error occurred. Please try again later."
        )
        return template.format(**kwargs) if kwargs else template


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> Optional[List[str]]:
    value = os.environ.get(name)
    if value is None:
        return None
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings() -> ContactSettings:
    """
    Build settings from environment variables.

    A .env file in the working directory is loaded first (for local development).
    Unset variables keep the defaults defined on ContactSettings.
    """
    load_dotenv()

    values = {}
    string_vars = {
        "admin_email": "CONTACT_ADMIN_EMAIL",
        "from_email": "CONTACT_FROM_EMAIL",
        "backup_admin_email": "CONTACT_BACKUP_ADMIN_EMAIL",
        "site_name": "CONTACT_SITE_NAME",
        "smtp_host": "SMTP_HOST",
        "smtp_user": "SMTP_USER",
        "smtp_password": "SMTP_PASSWORD",
        "rate_limit_backend": "CONTACT_RATE_LIMIT_BACKEND",
        "rate_limit_database_url": "DATABASE_URL",
        "log_dir": "CONTACT_LOG_DIR",
        "timezone": "CONTACT_TIMEZONE",
    }
    for field, env_name in string_vars.items():
        if os.environ.get(env_name):
            values[field] = os.environ[env_name]

    int_vars = {
        "smtp_port": "SMTP_PORT",
        "rate_limit_seconds": "CONTACT_RATE_LIMIT_SECONDS",
        "rate_limit_retention_seconds": "CONTACT_RATE_LIMIT_RETENTION_SECONDS",
        "max_message_length": "CONTACT_MAX_MESSAGE_LENGTH",
        "max_subject_length": "CONTACT_MAX_SUBJECT_LENGTH",
        "log_retention_days": "CONTACT_LOG_RETENTION_DAYS",
        "maintenance_interval_seconds": "CONTACT_MAINTENANCE_INTERVAL_SECONDS",
    }
    for field, env_name in int_vars.items():
        if os.environ.get(env_name):
            values[field] = int(os.environ[env_name])

    values["smtp_starttls"] = _env_bool("SMTP_STARTTLS", True)
    values["enable_logging"] = _env_bool("CONTACT_ENABLE_LOGGING", True)
    values["enable_spam_filter"] = _env_bool("CONTACT_ENABLE_SPAM_FILTER", True)
    values["enable_scheduler"] = _env_bool("CONTACT_ENABLE_SCHEDULER", True)
    values["trust_forwarded_for"] = _env_bool("CONTACT_TRUST_FORWARDED_FOR", False)

    spam_keywords = _env_list("CONTACT_SPAM_KEYWORDS")
    if spam_keywords is not None:
        values["spam_keywords"] = [keyword.lower() for keyword in spam_keywords]

    cors_origins = _env_list("CONTACT_CORS_ORIGINS")
    if cors_origins:
        values["cors_origins"] = cors_origins

    # Length limits are baked into the error messages
    values["error_messages"] = default_error_messages(
        values.get("max_message_length", 5000),
        values.get("max_subject_length", 200),
    )

    return ContactSettings(**values)


def validate_settings(settings: ContactSettings) -> bool:
    """
    Check critical configuration and log anything invalid.

    Returns:
        True if the admin and from addresses are both valid
    """
    ok = True
    if not is_valid_email(settings.admin_email):
        logger.error(f"Invalid ADMIN_EMAIL configuration: {settings.admin_email}")
        ok = False
    if not is_valid_email(settings.from_email):
        logger.error(f"Invalid SMTP_FROM_EMAIL configuration: {settings.from_email}")
        ok = False
    if settings.backup_admin_email and not is_valid_email(settings.backup_admin_email):
        logger.error(f"Invalid BACKUP_ADMIN_EMAIL configuration: {settings.backup_admin_email}")
        ok = False
    return ok
