"""
Event-related Pydantic schemas
"""

from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import BaseModel

from app.models.event import EventTemplate

class EventCreate(BaseModel):
    """Schema for creating an event"""
    name: str
    date: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None

class EventUpdate(BaseModel):
    """Schema for updating an event; the slug is never editable"""
    name: Optional[str] = None
    date: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    template: Optional[EventTemplate] = None
    template_config: Optional[Dict[str, Any]] = None
    is_published: Optional[bool] = None
    cover_image: Optional[str] = None

class EventResponse(BaseModel):
    """Event as seen by its host"""
    id: str
    name: str
    slug: str
    date: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    template: str
    template_config: Dict[str, Any] = {}
    is_published: bool
    cover_image: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class GuestStats(BaseModel):
    """RSVP counters for an event"""
    total: int = 0
    confirmed: int = 0
    declined: int = 0
    pending: int = 0

class EventDetail(EventResponse):
    """Event response with guest counters"""
    stats: GuestStats

class PublicEvent(BaseModel):
    """Fields of an event shown on its public page"""
    name: str
    slug: str
    date: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    template: str
    template_config: Dict[str, Any] = {}
    cover_image: Optional[str] = None

    class Config:
        from_attributes = True
