"""
Database models package
"""

from .event import Event, EventTemplate
from .guest import Guest, RsvpStatus
from .import_upload import ImportUpload

__all__ = ["Event", "EventTemplate", "Guest", "RsvpStatus", "ImportUpload"]
