"""
Pydantic schemas package
"""

from .common import *
from .event import *
from .guest import *
from .rsvp import *
from .imports import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "EventCreate",
    "EventUpdate",
    "EventResponse",
    "EventDetail",
    "GuestStats",
    "PublicEvent",
    "GuestCreate",
    "GuestUpdate",
    "GuestResponse",
    "RsvpSubmit",
    "RsvpView",
    "ColumnMapping",
    "ImportCommit",
    "SheetSelection",
    "MappedGuestRow",
    "MappedImport",
    "ImportPreview",
    "ImportResult",
]
