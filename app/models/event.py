"""
Event model
"""

import uuid
from enum import Enum

from sqlalchemy import Column, String, Text, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship

from app.core.db import Base, utcnow

class EventTemplate(str, Enum):
    ELEGANT = "elegant"
    RUSTIC = "rustic"
    MODERN = "modern"

class Event(Base):
    __tablename__ = "events"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = Column(String(128), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    date = Column(DateTime, nullable=True)
    location = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    template = Column(String(32), nullable=False, default=EventTemplate.ELEGANT.value)
    template_config = Column(JSON, nullable=False, default=dict)
    is_published = Column(Boolean, nullable=False, default=False)
    cover_image = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    # Relationships
    guests = relationship(
        "Guest", back_populates="event", cascade="all, delete-orphan"
    )
    import_uploads = relationship(
        "ImportUpload", back_populates="event", cascade="all, delete-orphan"
    )
