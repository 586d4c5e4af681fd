"""
Tests for the RSVP token lifecycle
"""

import re
from datetime import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from app.core.db import utcnow
from app.core.errors import InvalidTokenError, ValidationError
from app.models import Guest
from app.services import event_service, rsvp_service
from app.services.rsvp_service import (
    build_rsvp_link,
    build_whatsapp_link,
    generate_rsvp_token,
    get_rsvp,
    submit_rsvp,
)


def test_generate_rsvp_token_shape():
    token = generate_rsvp_token()

    assert len(token) >= 12
    assert re.fullmatch(r"[A-Za-z0-9_-]+", token)


def test_generated_tokens_do_not_collide(db_session, sample_event):
    """Tokens for a large guest list insert without constraint violations"""
    guests = [
        Guest(event_id=sample_event.id, name=f"Guest {i}", rsvp_token=generate_rsvp_token())
        for i in range(2000)
    ]
    db_session.add_all(guests)
    db_session.commit()

    assert db_session.query(Guest).count() == 2000


def test_store_rejects_forced_token_collision(db_session, sample_event, make_guest):
    first = make_guest(sample_event, name="Ana", token="same-token-123")

    db_session.add(Guest(event_id=sample_event.id, name="Rui", rsvp_token="same-token-123"))
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    db_session.refresh(first)
    assert first.name == "Ana"
    assert db_session.query(Guest).count() == 1


# -------- Public read --------

def test_get_rsvp_returns_guest_and_event(db_session, sample_event, make_guest):
    make_guest(sample_event, name="Maria Silva", token="tok-maria-0001", plus_one=True)

    view = get_rsvp(db_session, "tok-maria-0001")

    assert view.name == "Maria Silva"
    assert view.rsvp_status == "pending"
    assert view.plus_one is True
    assert view.event.name == "Ana & João"
    assert view.event.location == "Quinta do Lago"
    assert view.event.template == "rustic"
    assert view.event.template_config == {"headline": "We're getting married"}


def test_get_rsvp_unknown_token(db_session, sample_event):
    with pytest.raises(InvalidTokenError):
        get_rsvp(db_session, "never-existed")


def test_get_rsvp_unpublished_and_pending_looks_unknown(db_session, draft_event, make_guest):
    make_guest(draft_event, token="tok-draft-0001")

    with pytest.raises(InvalidTokenError) as hidden:
        get_rsvp(db_session, "tok-draft-0001")
    with pytest.raises(InvalidTokenError) as unknown:
        get_rsvp(db_session, "never-existed")

    assert hidden.value.message == unknown.value.message
    assert hidden.value.error_code == unknown.value.error_code
    assert hidden.value.status_code == unknown.value.status_code


def test_get_rsvp_unpublished_but_answered_stays_visible(db_session, draft_event, make_guest):
    make_guest(
        draft_event, token="tok-draft-0002",
        rsvp_status="declined", responded_at=datetime(2026, 5, 1, 12, 0),
    )

    view = get_rsvp(db_session, "tok-draft-0002")

    assert view.rsvp_status == "declined"


# -------- Public write --------

def test_submit_then_read_round_trip(db_session, sample_event, make_guest):
    make_guest(sample_event, token="tok-maria-0001")
    before = utcnow()

    submit_rsvp(db_session, "tok-maria-0001", "confirmed", plus_one_name="X")
    view = get_rsvp(db_session, "tok-maria-0001")

    assert view.rsvp_status == "confirmed"
    assert view.plus_one_name == "X"
    assert view.responded_at is not None
    assert view.responded_at >= before


def test_resubmission_refreshes_timestamp(db_session, sample_event, make_guest, monkeypatch):
    make_guest(sample_event, token="tok-maria-0001")
    times = iter([datetime(2026, 5, 1, 10, 0), datetime(2026, 5, 2, 10, 0)])
    monkeypatch.setattr(rsvp_service, "utcnow", lambda: next(times))

    first = submit_rsvp(db_session, "tok-maria-0001", "confirmed")
    assert first.rsvp_status == "confirmed"
    assert first.responded_at == datetime(2026, 5, 1, 10, 0)

    second = submit_rsvp(db_session, "tok-maria-0001", "confirmed")
    assert second.rsvp_status == "confirmed"
    assert second.responded_at == datetime(2026, 5, 2, 10, 0)


def test_guest_can_change_their_answer(db_session, sample_event, make_guest):
    make_guest(sample_event, token="tok-maria-0001")

    submit_rsvp(db_session, "tok-maria-0001", "confirmed")
    guest = submit_rsvp(db_session, "tok-maria-0001", "declined")

    assert guest.rsvp_status == "declined"


def test_submit_pending_is_rejected(db_session, sample_event, make_guest):
    guest = make_guest(sample_event, token="tok-maria-0001")

    with pytest.raises(ValidationError):
        submit_rsvp(db_session, "tok-maria-0001", "pending")

    db_session.refresh(guest)
    assert guest.rsvp_status == "pending"
    assert guest.responded_at is None


@pytest.mark.parametrize("status", ["maybe", "", "CONFIRMED"])
def test_submit_unknown_status_is_rejected(db_session, sample_event, make_guest, status):
    make_guest(sample_event, token="tok-maria-0001")

    with pytest.raises(ValidationError):
        submit_rsvp(db_session, "tok-maria-0001", status)


def test_submit_unknown_token(db_session, sample_event):
    with pytest.raises(InvalidTokenError):
        submit_rsvp(db_session, "never-existed", "confirmed")


def test_submit_trims_optional_fields(db_session, sample_event, make_guest):
    make_guest(sample_event, token="tok-maria-0001")

    guest = submit_rsvp(
        db_session, "tok-maria-0001", "confirmed",
        plus_one_name="   ", dietary="  vegan ", notes="",
    )

    assert guest.plus_one_name is None
    assert guest.dietary == "vegan"
    assert guest.notes is None


def test_deleted_event_invalidates_tokens(db_session, sample_event, make_guest):
    tokens = [f"tok-guest-{i:04d}" for i in range(5)]
    for i, token in enumerate(tokens):
        make_guest(sample_event, name=f"Guest {i}", token=token)

    event_service.delete_event(db_session, "host-1", sample_event.id)

    assert db_session.query(Guest).count() == 0
    for token in tokens:
        with pytest.raises(InvalidTokenError):
            get_rsvp(db_session, token)


# -------- Links --------

def test_build_rsvp_link():
    assert build_rsvp_link("ana-joao-0001", "abc").endswith("/event/ana-joao-0001/rsvp/abc")


def test_build_whatsapp_link():
    with_phone = build_whatsapp_link("Ana", "http://x/rsvp", "+351 912-345-678")
    without_phone = build_whatsapp_link("Ana", "http://x/rsvp")

    assert with_phone.startswith("https://wa.me/351912345678?text=")
    assert without_phone.startswith("https://wa.me/?text=")
    assert "Ana" in without_phone
