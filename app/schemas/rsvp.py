"""
Public RSVP schemas
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from app.schemas.event import PublicEvent

class RsvpSubmit(BaseModel):
    """Guest response; status is checked by the RSVP service"""
    status: str
    plus_one_name: Optional[str] = Field(None, alias="plusOneName")
    dietary: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        populate_by_name = True

class RsvpView(BaseModel):
    """What a guest sees when opening their RSVP link"""
    guest_id: str
    name: str
    rsvp_status: str
    plus_one: bool
    plus_one_name: Optional[str] = None
    dietary: Optional[str] = None
    notes: Optional[str] = None
    responded_at: Optional[datetime] = None
    event: PublicEvent
