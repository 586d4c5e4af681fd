"""
RSVP token lifecycle: issuing tokens, the public read/write surface keyed by
token, and the links hosts hand out to guests.
"""

import logging
import re
import secrets
from typing import Optional
from urllib.parse import quote

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import utcnow
from app.core.errors import InvalidTokenError, ValidationError
from app.models import Guest, RsvpStatus
from app.schemas.event import PublicEvent
from app.schemas.rsvp import RsvpView
from app.services.repositories import GuestRepo

logger = logging.getLogger(__name__)

# Targets a guest may choose; there is no way back to pending
RESPONSE_STATUSES = (RsvpStatus.CONFIRMED.value, RsvpStatus.DECLINED.value)


def generate_rsvp_token() -> str:
    """Fresh url-safe token; uniqueness is enforced by the guests.rsvp_token constraint"""
    return secrets.token_urlsafe(settings.RSVP_TOKEN_BYTES)


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Trim a free-text value, turning blanks into None"""
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def build_rsvp_link(slug: str, token: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}/event/{slug}/rsvp/{token}"


def build_whatsapp_link(guest_name: str, rsvp_link: str, phone: Optional[str] = None) -> str:
    message = quote(f"Hi {guest_name}! You're invited. Confirm your attendance here: {rsvp_link}")
    if phone:
        digits = re.sub(r"\D", "", phone)
        if digits:
            return f"https://wa.me/{digits}?text={message}"
    return f"https://wa.me/?text={message}"


def _short(token: str) -> str:
    return f"{token[:4]}…" if token else "<empty>"


def _resolve_visible_guest(db: Session, token: str) -> Guest:
    """Guest behind a token, as long as the guest may see the invitation.

    An unpublished event hides its invitations from guests who have not
    answered yet; guests who already answered keep seeing their response.
    Both failures raise the same error.
    """
    guest = GuestRepo.get_by_token(db, token)
    if not guest:
        logger.info(f"RSVP lookup with unknown token {_short(token)}")
        raise InvalidTokenError()

    if not guest.event.is_published and guest.rsvp_status == RsvpStatus.PENDING.value:
        logger.info(f"RSVP lookup for unpublished event {guest.event_id}")
        raise InvalidTokenError()

    return guest


def get_rsvp(db: Session, token: str) -> RsvpView:
    """Public read of an invitation"""
    guest = _resolve_visible_guest(db, token)
    return RsvpView(
        guest_id=guest.id,
        name=guest.name,
        rsvp_status=guest.rsvp_status,
        plus_one=guest.plus_one,
        plus_one_name=guest.plus_one_name,
        dietary=guest.dietary,
        notes=guest.notes,
        responded_at=guest.responded_at,
        event=PublicEvent.model_validate(guest.event),
    )


def submit_rsvp(
    db: Session,
    token: str,
    status: str,
    plus_one_name: Optional[str] = None,
    dietary: Optional[str] = None,
    notes: Optional[str] = None,
) -> Guest:
    """Record a guest's answer.

    Any number of submissions is accepted and the latest one wins; the
    response timestamp is refreshed every time.
    """
    if status not in RESPONSE_STATUSES:
        raise ValidationError(
            "Invalid status",
            details={"status": status, "allowed": list(RESPONSE_STATUSES)},
        )

    guest = GuestRepo.get_by_token(db, token)
    if not guest:
        logger.info(f"RSVP submission with unknown token {_short(token)}")
        raise InvalidTokenError()

    guest.rsvp_status = status
    guest.plus_one_name = clean_optional(plus_one_name)
    guest.dietary = clean_optional(dietary)
    guest.notes = clean_optional(notes)
    guest.responded_at = utcnow()

    db.commit()
    db.refresh(guest)

    logger.info(f"Guest {guest.id} of event {guest.event_id} responded {status}")
    return guest
