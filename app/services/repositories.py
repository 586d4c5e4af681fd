"""
Repository layer over the relational store.

Every host-facing lookup goes through one of the ``resolve_owned_*``
functions, which collapse "does not exist" and "belongs to someone else" into
a single ``NotFoundError``.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models import Event, Guest, ImportUpload

logger = logging.getLogger(__name__)


# -------- Event repository --------

class EventRepo:
    @staticmethod
    def get_by_slug(db: Session, slug: str) -> Optional[Event]:
        return db.query(Event).filter(Event.slug == slug).first()

    @staticmethod
    def get_owned(db: Session, event_id: str, owner_id: str) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id, Event.owner_id == owner_id).first()

    @staticmethod
    def slug_exists(db: Session, slug: str) -> bool:
        return db.query(Event.id).filter(Event.slug == slug).first() is not None

    @staticmethod
    def list_for_owner(db: Session, owner_id: str) -> List[tuple]:
        """Owner's events, newest first, each paired with its guest count"""
        return (
            db.query(Event, func.count(Guest.id))
            .outerjoin(Guest, Guest.event_id == Event.id)
            .filter(Event.owner_id == owner_id)
            .group_by(Event.id)
            .order_by(Event.created_at.desc())
            .all()
        )


# -------- Guest repository --------

class GuestRepo:
    @staticmethod
    def get_by_token(db: Session, token: str) -> Optional[Guest]:
        return db.query(Guest).filter(Guest.rsvp_token == token).first()

    @staticmethod
    def get_owned(db: Session, guest_id: str, owner_id: str) -> Optional[Guest]:
        return (
            db.query(Guest)
            .join(Event, Guest.event_id == Event.id)
            .filter(Guest.id == guest_id, Event.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def status_counts(db: Session, event_id: str) -> dict:
        rows = (
            db.query(Guest.rsvp_status, func.count(Guest.id))
            .filter(Guest.event_id == event_id)
            .group_by(Guest.rsvp_status)
            .all()
        )
        return {status: count for status, count in rows}


# -------- Import upload repository --------

class ImportUploadRepo:
    @staticmethod
    def get_owned(db: Session, upload_id: str, owner_id: str) -> Optional[ImportUpload]:
        return (
            db.query(ImportUpload)
            .filter(ImportUpload.id == upload_id, ImportUpload.owner_id == owner_id)
            .first()
        )

    @staticmethod
    def delete_older_than(db: Session, cutoff) -> int:
        return (
            db.query(ImportUpload)
            .filter(ImportUpload.created_at < cutoff)
            .delete(synchronize_session=False)
        )


# -------- Resolve-and-authorize --------

def resolve_owned_event(db: Session, event_id: str, owner_id: str) -> Event:
    event = EventRepo.get_owned(db, event_id, owner_id)
    if not event:
        logger.info(f"Event {event_id} not resolvable for user {owner_id}")
        raise NotFoundError("Event")
    return event


def resolve_owned_guest(db: Session, guest_id: str, owner_id: str) -> Guest:
    guest = GuestRepo.get_owned(db, guest_id, owner_id)
    if not guest:
        logger.info(f"Guest {guest_id} not resolvable for user {owner_id}")
        raise NotFoundError("Guest")
    return guest


def resolve_owned_upload(db: Session, upload_id: str, owner_id: str) -> ImportUpload:
    upload = ImportUploadRepo.get_owned(db, upload_id, owner_id)
    if not upload:
        raise NotFoundError("Import")
    return upload
