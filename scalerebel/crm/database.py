"""Database models for the CRM: clients and contact-form inquiries."""

from enum import Enum

from sqlalchemy import Column, String, DateTime, Date, Float, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship

# Import Base from auth database to use the same declarative base
from scalerebel.auth.database import Base, utcnow


class ClientStatus(str, Enum):
    """Pipeline stage of a client."""
    LEAD = "lead"
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Client(Base):
    """A client (or prospective client) tracked by the studio."""
    __tablename__ = "clients"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    company = Column(String(200), nullable=True)
    status = Column(String(20), default=ClientStatus.LEAD.value, nullable=False, index=True)
    budget = Column(Float, nullable=True)
    deadline = Column(Date, nullable=True)
    cost = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    inquiries = relationship("Inquiry", back_populates="client", order_by="Inquiry.created_at.desc()")


class Inquiry(Base):
    """A contact-form submission, optionally linked to a client."""
    __tablename__ = "inquiries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    company = Column(String(200), nullable=True)
    budget = Column(String(100), nullable=True)  # Free text from the contact form
    message = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    client = relationship("Client", back_populates="inquiries")
