"""Pydantic schemas for the contact form API."""

from pydantic import BaseModel, field_validator
from typing import Optional


class ContactRequest(BaseModel):
    """
    Schema for contact form submission.

    Fields are loosely typed here; presence and format are checked in the
    route so failures map to the form's own error messages.
    """
    name: Optional[str] = None
    email: Optional[str] = None
    message: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    budget: Optional[str] = None
    website: Optional[str] = None  # Honeypot: hidden from humans

    @field_validator('name', 'email', 'message', 'phone', 'company', 'budget', 'website', mode='before')
    @classmethod
    def coerce_to_string(cls, v):
        """Forms sometimes post numbers (phone, budget) as JSON numbers."""
        if v is None or isinstance(v, str):
            return v
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        raise ValueError("must be a string")


class ContactResponse(BaseModel):
    """Schema for contact form response."""
    success: bool
