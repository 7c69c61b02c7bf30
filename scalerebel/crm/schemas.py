"""Pydantic schemas for the CRM admin API."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import date, datetime

from scalerebel.crm.database import ClientStatus


class ClientFields(BaseModel):
    """Editable client attributes shared by create and update."""
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    company: Optional[str] = Field(None, max_length=200)
    status: Optional[ClientStatus] = None
    budget: Optional[float] = Field(None, ge=0)
    deadline: Optional[date] = None
    cost: Optional[float] = Field(None, ge=0)
    notes: Optional[str] = Field(None, max_length=10000)

    @field_validator('email', 'phone', 'company', 'notes', mode='before')
    @classmethod
    def blank_to_none(cls, v):
        """The admin form posts empty strings for untouched inputs."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v

    @field_validator('deadline', mode='before')
    @classmethod
    def blank_deadline(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ClientCreate(ClientFields):
    """Schema for creating a client."""
    name: str = Field(..., max_length=200)
    status: ClientStatus = ClientStatus.LEAD

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ClientUpdate(ClientFields):
    """Schema for updating a client; only fields that are sent are changed."""
    id: int
    name: Optional[str] = Field(None, max_length=200)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is not None and not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip() if v is not None else v


class ClientDeleteRequest(BaseModel):
    id: int


class InquiryResponse(BaseModel):
    """Schema for inquiry response."""
    id: int
    client_id: Optional[int] = None
    name: str
    email: str
    phone: Optional[str] = None
    company: Optional[str] = None
    budget: Optional[str] = None
    message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ClientResponse(BaseModel):
    """Schema for client response."""
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    status: ClientStatus
    budget: Optional[float] = None
    deadline: Optional[date] = None
    cost: Optional[float] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ClientDetailResponse(ClientResponse):
    """Client with its linked inquiries."""
    inquiries: List[InquiryResponse] = []


class ClientListResponse(BaseModel):
    clients: List[ClientResponse]


class ClientEnvelope(BaseModel):
    client: ClientDetailResponse


class InquiryListResponse(BaseModel):
    inquiries: List[InquiryResponse]


class InquiryLinkRequest(BaseModel):
    """Link an inquiry to a client; a null client_id clears the link."""
    inquiry_id: int
    client_id: Optional[int] = None


class SuccessResponse(BaseModel):
    success: bool = True
