"""Pydantic schemas for admin login requests and responses."""

from pydantic import BaseModel, field_validator
from typing import Optional


class OtpSendRequest(BaseModel):
    """Login code request schema."""
    email: Optional[str] = None


class OtpSendResponse(BaseModel):
    """Always {sent: true}, whether or not the email is the admin's."""
    sent: bool = True


class OtpVerifyRequest(BaseModel):
    """Login code verification schema."""
    email: Optional[str] = None
    code: Optional[str] = None

    @field_validator('code', mode='before')
    @classmethod
    def coerce_numeric_code(cls, v):
        """Accept codes sent as JSON numbers."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v).zfill(6)
        return v


class OtpVerifyResponse(BaseModel):
    """Session token response schema."""
    token: str
    expiresIn: int  # Seconds until the session expires


class LogoutResponse(BaseModel):
    success: bool = True
