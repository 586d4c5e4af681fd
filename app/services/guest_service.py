"""
Host-side guest management
"""

import logging
import re
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError, ValidationError
from app.models import Guest, RsvpStatus
from app.schemas.event import GuestStats
from app.schemas.guest import GuestCreate, GuestResponse, GuestUpdate
from app.services.repositories import GuestRepo, resolve_owned_event, resolve_owned_guest
from app.services.rsvp_service import (
    build_rsvp_link,
    build_whatsapp_link,
    clean_optional,
    generate_rsvp_token,
)

logger = logging.getLogger(__name__)


def guest_to_response(guest: Guest, slug: str) -> GuestResponse:
    """Guest as shown to its host, with the links to hand out"""
    response = GuestResponse.model_validate(guest)
    response.rsvp_link = build_rsvp_link(slug, guest.rsvp_token)
    response.whatsapp_link = build_whatsapp_link(guest.name, response.rsvp_link, guest.phone)
    return response


def list_guests(
    db: Session,
    owner_id: str,
    event_id: str,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = 1,
    per_page: int = 50,
) -> Tuple[List[Guest], int]:
    """One page of an event's guests ordered by name, plus the total match count"""
    event = resolve_owned_event(db, event_id, owner_id)

    query = db.query(Guest).filter(Guest.event_id == event.id)
    if status:
        query = query.filter(Guest.rsvp_status == status)
    if search:
        pattern = re.sub(r"([\\%_])", r"\\\1", search)
        query = query.filter(Guest.name.ilike(f"%{pattern}%", escape="\\"))

    total = query.count()
    offset = (page - 1) * per_page
    guests = query.order_by(Guest.name).offset(offset).limit(per_page).all()
    return guests, total


def create_guest(db: Session, owner_id: str, event_id: str, guest_data: GuestCreate) -> Guest:
    event = resolve_owned_event(db, event_id, owner_id)

    name = (guest_data.name or "").strip()
    if not name:
        raise ValidationError("Guest name is required")

    guest = Guest(
        event_id=event.id,
        name=name,
        email=clean_optional(guest_data.email),
        phone=clean_optional(guest_data.phone),
        dietary=clean_optional(guest_data.dietary),
        notes=clean_optional(guest_data.notes),
        plus_one=guest_data.plus_one,
        rsvp_token=generate_rsvp_token(),
        rsvp_status=RsvpStatus.PENDING.value,
    )
    db.add(guest)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise PersistenceError("Could not add guest") from e
    db.refresh(guest)

    logger.info(f"Guest {guest.id} added to event {event.id}")
    return guest


def update_guest(db: Session, owner_id: str, guest_id: str, guest_update: GuestUpdate) -> Guest:
    """Edit host-managed fields; RSVP status and token are never touched here"""
    guest = resolve_owned_guest(db, guest_id, owner_id)
    updates = guest_update.model_dump(exclude_unset=True)

    if "name" in updates:
        name = (updates["name"] or "").strip()
        if not name:
            raise ValidationError("Guest name is required")
        guest.name = name
    for field_name in ("email", "phone", "dietary"):
        if field_name in updates:
            setattr(guest, field_name, clean_optional(updates[field_name]))
    if updates.get("plus_one") is not None:
        guest.plus_one = updates["plus_one"]

    db.commit()
    db.refresh(guest)
    return guest


def delete_guest(db: Session, owner_id: str, guest_id: str) -> None:
    guest = resolve_owned_guest(db, guest_id, owner_id)
    db.delete(guest)
    db.commit()
    logger.info(f"Guest {guest_id} deleted")


def get_guest_stats(db: Session, event_id: str) -> GuestStats:
    counts = GuestRepo.status_counts(db, event_id)
    return GuestStats(
        total=sum(counts.values()),
        confirmed=counts.get(RsvpStatus.CONFIRMED.value, 0),
        declined=counts.get(RsvpStatus.DECLINED.value, 0),
        pending=counts.get(RsvpStatus.PENDING.value, 0),
    )
