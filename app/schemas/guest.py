"""
Guest-related Pydantic schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

class GuestCreate(BaseModel):
    """Schema for manually adding a guest"""
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None
    plus_one: bool = False

class GuestUpdate(BaseModel):
    """Host-editable guest fields; status and token are not among them"""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    dietary: Optional[str] = None
    plus_one: Optional[bool] = None

class GuestResponse(BaseModel):
    """Guest response schema"""
    id: str
    event_id: str
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    rsvp_token: str
    rsvp_status: str
    plus_one: bool
    plus_one_name: Optional[str] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None
    responded_at: Optional[datetime] = None
    created_at: datetime
    rsvp_link: Optional[str] = None
    whatsapp_link: Optional[str] = None

    class Config:
        from_attributes = True
