"""Pydantic schemas for contact API."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Submission(BaseModel):
    """A sanitized contact form submission."""
    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    email: str
    phone: str = ""
    company: str = ""
    inquiry_type: str = Field(..., alias="inquiryType")
    subject: str
    message: str
    newsletter: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def log_record(self, ip: str, user_agent: str) -> Dict[str, Any]:
        """Metadata written to the submissions log. The message body is left out."""
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "company": self.company,
            "inquiryType": self.inquiry_type,
            "subject": self.subject,
            "messageLength": len(self.message.encode("utf-8")),
            "newsletter": self.newsletter,
            "ip": ip,
            "userAgent": user_agent,
        }


class ContactResponse(BaseModel):
    """Schema for contact form response."""
    success: bool
    message: str
    data: Optional[Any] = None
    timestamp: str
