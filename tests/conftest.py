"""
Shared fixtures: in-memory database, sample events and an API client
"""

import io
from datetime import datetime

import pandas as pd
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.db import Base, get_db, enable_sqlite_foreign_keys
from app.models import Event, Guest
from app.utils.security import get_current_user_id, rate_limiter

HOST_ID = "host-1"
OTHER_HOST_ID = "host-2"

# Test database setup
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.clear()
    yield
    rate_limiter.clear()

def _make_event(db_session, owner_id=HOST_ID, name="Ana & João", slug="ana-joao-0001", published=True):
    event = Event(
        owner_id=owner_id,
        name=name,
        slug=slug,
        date=datetime(2026, 6, 20, 16, 0),
        location="Quinta do Lago",
        description="Join us!",
        template="rustic",
        template_config={"headline": "We're getting married"},
        is_published=published,
    )
    db_session.add(event)
    db_session.commit()
    db_session.refresh(event)
    return event

def _make_guest(db_session, event, name="Maria Silva", token="tok-maria-0001", **fields):
    guest = Guest(event_id=event.id, name=name, rsvp_token=token, **fields)
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest

@pytest.fixture
def sample_event(db_session):
    """Published event owned by HOST_ID"""
    return _make_event(db_session)

@pytest.fixture
def draft_event(db_session):
    """Unpublished event owned by HOST_ID"""
    return _make_event(db_session, name="Draft party", slug="draft-party-0002", published=False)

def _create_test_excel(sheets):
    """Excel bytes from {sheet name: column data}"""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, data in sheets.items():
            pd.DataFrame(data).to_excel(writer, index=False, sheet_name=sheet_name)
    return buffer.getvalue()

@pytest.fixture
def client(db_session):
    """API client authenticated as HOST_ID and bound to the test session"""
    from main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user_id] = lambda: HOST_ID

    yield TestClient(app)

    app.dependency_overrides.clear()

@pytest.fixture
def make_event(db_session):
    """Factory: make_event(owner_id=..., name=..., slug=..., published=...)"""
    def factory(**kwargs):
        return _make_event(db_session, **kwargs)
    return factory

@pytest.fixture
def make_guest(db_session):
    """Factory: make_guest(event, name=..., token=..., **columns)"""
    def factory(event, **kwargs):
        return _make_guest(db_session, event, **kwargs)
    return factory

@pytest.fixture
def excel_bytes():
    """Builder for in-memory workbooks"""
    return _create_test_excel
