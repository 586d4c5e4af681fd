"""
Event creation, editing and the public event page
"""

import logging
import re
import secrets
import unicodedata
from typing import List, Tuple

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models import Event, EventTemplate
from app.schemas.event import EventCreate, EventUpdate
from app.services.repositories import EventRepo, resolve_owned_event
from app.services.rsvp_service import clean_optional

logger = logging.getLogger(__name__)

SLUG_MAX_BASE_LENGTH = 55


def slugify(text: str) -> str:
    """URL-safe base for a slug: "Ana & João's Wedding" -> "ana-joaos-wedding" """
    text = unicodedata.normalize("NFD", text.lower())
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9\s-]", "", text).strip()
    text = re.sub(r"\s+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text[:SLUG_MAX_BASE_LENGTH].strip("-") or "event"


def generate_slug(db: Session, name: str) -> str:
    """Slug with a random 4-digit suffix, regenerated until unused"""
    base = slugify(name)
    slug = f"{base}-{secrets.randbelow(10000):04d}"
    while EventRepo.slug_exists(db, slug):
        slug = f"{base}-{secrets.randbelow(10000):04d}"
    return slug


def create_event(db: Session, owner_id: str, event_data: EventCreate) -> Event:
    name = (event_data.name or "").strip()
    if not name:
        raise ValidationError("Event name is required")

    event = Event(
        owner_id=owner_id,
        name=name,
        slug=generate_slug(db, name),
        date=event_data.date,
        location=clean_optional(event_data.location),
        description=clean_optional(event_data.description),
        template=EventTemplate.ELEGANT.value,
        template_config={},
        is_published=False,
    )
    db.add(event)
    db.commit()
    db.refresh(event)

    logger.info(f"Event {event.id} created with slug {event.slug}")
    return event


def list_events(db: Session, owner_id: str) -> List[Tuple[Event, int]]:
    return EventRepo.list_for_owner(db, owner_id)


def get_event(db: Session, owner_id: str, event_id: str) -> Event:
    return resolve_owned_event(db, event_id, owner_id)


def update_event(db: Session, owner_id: str, event_id: str, event_update: EventUpdate) -> Event:
    """Apply the provided fields; anything not in EventUpdate, slug included, is untouchable"""
    event = resolve_owned_event(db, event_id, owner_id)
    updates = event_update.model_dump(exclude_unset=True)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise ValidationError("Event name is required")
        event.name = name
    if "date" in updates:
        event.date = updates["date"]
    for field_name in ("location", "description", "cover_image"):
        if field_name in updates:
            setattr(event, field_name, clean_optional(updates[field_name]))
    if updates.get("template") is not None:
        event.template = EventTemplate(updates["template"]).value
    if updates.get("template_config") is not None:
        event.template_config = dict(updates["template_config"])
    if updates.get("is_published") is not None:
        event.is_published = updates["is_published"]

    db.commit()
    db.refresh(event)
    return event


def delete_event(db: Session, owner_id: str, event_id: str) -> None:
    """Delete an event together with its guests and pending import uploads"""
    event = resolve_owned_event(db, event_id, owner_id)
    guest_count = len(event.guests)
    db.delete(event)
    db.commit()
    logger.info(f"Event {event_id} deleted with {guest_count} guests")


def get_public_event(db: Session, slug: str) -> Event:
    event = EventRepo.get_by_slug(db, slug)
    if not event or not event.is_published:
        raise NotFoundError("Event")
    return event
