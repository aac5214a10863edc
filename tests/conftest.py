# File: tests/conftest.py
"""
Pytest configuration and shared fixtures.
Provides an in-memory database, a fake calendar and notifier, and an API client.
"""

import os

# Must be set before handypro.config is imported anywhere
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-not-for-production"
os.environ["SECURITY_HEADERS_ENABLED"] = "true"
os.environ["BOOKING_SERIALIZE_SLOTS"] = "true"
os.environ["BUSINESS_TIMEZONE"] = "America/New_York"
os.environ["INTERNAL_NOTIFICATION_EMAILS"] = "office@handypro.com"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from handypro.database import Base, get_db
from handypro.domain.scheduling.locks import SlotLockRegistry
from handypro.domain.scheduling.router import get_booking_notifier
from handypro.domain.scheduling.service import BookingService
from handypro.domain.scheduling.time_calculator import TimeWindow, overlaps
from handypro.main import app
from handypro.models import Service, User
from handypro.security_utils import create_access_token, hash_password
from handypro.services.google_calendar_service import (
    CalendarEvent,
    CreatedEvent,
    get_calendar_gateway,
)

BUSINESS_TZ = "America/New_York"
STAFF_EMAIL = "office@handypro.com"


# ==================== Fakes ====================

class FakeCalendarGateway:
    """In-memory calendar: created events show up in later list_events calls."""

    def __init__(self):
        self.events: list[CalendarEvent] = []
        self.created = []
        self.list_calls = []
        self.list_error = None
        self.create_error = None

    def add_busy(self, start, end, summary="Busy"):
        event = CalendarEvent(id=f"busy_{len(self.events) + 1}", summary=summary, window=TimeWindow(start, end))
        self.events.append(event)
        return event

    async def list_events(self, window_start, window_end):
        self.list_calls.append((window_start, window_end))
        if self.list_error:
            raise self.list_error
        query = TimeWindow(window_start, window_end)
        return [e for e in self.events if overlaps(e.window, query)]

    async def create_event(self, details):
        if self.create_error:
            raise self.create_error
        event_id = f"evt_{len(self.created) + 1}"
        self.created.append(details)
        self.events.append(CalendarEvent(id=event_id, summary=details.summary, window=details.window))
        return CreatedEvent(id=event_id, html_link=f"https://calendar.example/{event_id}")


class FakeNotifier:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def booking_confirmed(self, booking, service_name):
        self.calls.append((booking.id, service_name))
        if self.error:
            raise self.error
        return self.result


# ==================== Database Fixtures ====================

@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db_session):
    """A catalog service bookings can reference."""
    plumbing = Service(
        name="Plumbing Repairs",
        description="Leak repairs, pipe maintenance and fixture installations.",
        category="Plumbing",
        rating=5,
    )
    db_session.add(plumbing)
    db_session.commit()
    db_session.refresh(plumbing)
    return plumbing


# ==================== Scheduling Fixtures ====================

@pytest.fixture
def gateway():
    return FakeCalendarGateway()


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def fixed_now():
    """A clock well before the 2024-06-01 appointments used in scenarios."""
    return datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def booking_service(db_session, gateway, notifier, fixed_now):
    return BookingService(
        db_session,
        gateway,
        notifier,
        timezone_name=BUSINESS_TZ,
        duration_minutes=60,
        internal_emails=[STAFF_EMAIL],
        slot_locks=SlotLockRegistry(),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def booking_payload(service):
    """Valid booking request body for 2024-06-01 14:00 New York time."""
    return {
        "serviceId": service.id,
        "clientName": "Jane Doe",
        "clientEmail": "jane@example.com",
        "clientPhone": "(555) 123-4567",
        "appointmentDate": "2024-06-01T14:00:00-04:00",
        "notes": "Kitchen sink is leaking",
    }


@pytest.fixture
def future_slot():
    """10:00 local time two days from now, so API requests are always in the future."""
    local_now = datetime.now(ZoneInfo(BUSINESS_TZ))
    return (local_now + timedelta(days=2)).replace(hour=10, minute=0, second=0, microsecond=0)


# ==================== API Fixtures ====================

@pytest.fixture
def client(session_factory, gateway, notifier):
    """TestClient wired to the test database, fake calendar and fake notifier."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_calendar_gateway] = lambda: gateway
    app.dependency_overrides[get_booking_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def _make_user(db_session, username, role):
    user = User(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password("correct-horse-battery"),
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, "homeowner", "user")


@pytest.fixture
def admin(db_session):
    return _make_user(db_session, "dispatcher", "admin")


@pytest.fixture
def user_headers(user):
    return {"Authorization": f"Bearer {create_access_token(str(user.id), user.role)}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {create_access_token(str(admin.id), admin.role)}"}
