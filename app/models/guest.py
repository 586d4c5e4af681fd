"""
Guest model
"""

import uuid
from enum import Enum

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from app.core.db import Base, utcnow

class RsvpStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"

class Guest(Base):
    __tablename__ = "guests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    # Issued once at creation, never reissued
    rsvp_token = Column(String(64), unique=True, nullable=False, index=True)
    rsvp_status = Column(String(16), nullable=False, default=RsvpStatus.PENDING.value)
    plus_one = Column(Boolean, nullable=False, default=False)
    plus_one_name = Column(String(255), nullable=True)
    dietary = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    event = relationship("Event", back_populates="guests")
