# File: tests/unit/test_booking_service.py
"""
Unit tests for the booking workflow.
Runs BookingService against the fake calendar with a fixed clock.
"""

import asyncio
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from handypro.domain.scheduling.errors import (
    GatewayRejected,
    GatewayUnreachable,
    PersistenceError,
    SlotUnavailable,
    ValidationError,
)
from handypro.domain.scheduling.locks import SlotLockRegistry
from handypro.domain.scheduling.repository import BookingRepository
from handypro.domain.scheduling.schemas import BookingCreate
from handypro.domain.scheduling.service import AvailabilityService, BookingService
from handypro.domain.scheduling.time_calculator import TimeWindow
from handypro.models import Booking

NY = ZoneInfo("America/New_York")


def count_bookings(db_session):
    return db_session.query(Booking).count()


# ==================== Conflict Scenarios ====================

class TestRequestBooking:
    """Tests for the check, persist, create, confirm sequence."""

    def test_free_slot_is_confirmed(self, booking_service, gateway, notifier, booking_payload, db_session):
        """14:00 on an empty calendar books [14:00, 15:00)."""
        outcome = asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        booking = outcome.booking
        assert booking.status == "confirmed"
        assert booking.confirmed is True
        assert booking.google_calendar_event_id == "evt_1"
        assert booking.calendar_sync_error is None
        assert booking.appointment_date == datetime(2024, 6, 1, 18, 0)
        assert booking.appointment_end == datetime(2024, 6, 1, 19, 0)

        details = gateway.created[0]
        assert details.window.start == datetime(2024, 6, 1, 14, 0, tzinfo=NY)
        assert details.window.end == datetime(2024, 6, 1, 15, 0, tzinfo=NY)
        assert details.timezone == "America/New_York"
        assert details.summary == "Service Appointment - Jane Doe"
        assert outcome.notification_sent is True
        assert notifier.calls == [(booking.id, "Plumbing Repairs")]
        assert count_bookings(db_session) == 1

    def test_event_details_carry_client_and_staff(self, booking_service, gateway, booking_payload):
        asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        details = gateway.created[0]
        assert details.attendees == ["jane@example.com", "office@handypro.com"]
        assert "Email: jane@example.com" in details.description
        assert "Phone: +15551234567" in details.description
        assert "Additional Notes: Kitchen sink is leaking" in details.description

    def test_overlapping_event_rejects_without_persisting(
        self, booking_service, gateway, booking_payload, db_session
    ):
        """An existing [09:00, 09:30) event blocks a 09:00 booking."""
        gateway.add_busy(datetime(2024, 6, 1, 9, 0, tzinfo=NY), datetime(2024, 6, 1, 9, 30, tzinfo=NY))
        booking_payload["appointmentDate"] = "2024-06-01T09:00:00-04:00"

        with pytest.raises(SlotUnavailable) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert exc_info.value.status_code == 409
        assert exc_info.value.booking_id is None
        assert gateway.created == []
        assert count_bookings(db_session) == 0

    def test_adjacent_event_does_not_conflict(self, booking_service, gateway, booking_payload):
        gateway.add_busy(datetime(2024, 6, 1, 13, 0, tzinfo=NY), datetime(2024, 6, 1, 14, 0, tzinfo=NY))
        gateway.add_busy(datetime(2024, 6, 1, 15, 0, tzinfo=NY), datetime(2024, 6, 1, 16, 0, tzinfo=NY))

        outcome = asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.booking.confirmed is True

    def test_identical_request_twice_is_unavailable(self, booking_service, booking_payload, db_session):
        """The first booking's event conflicts with the second request."""
        asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        with pytest.raises(SlotUnavailable):
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert count_bookings(db_session) == 1

    def test_conflict_check_queries_the_window(self, booking_service, gateway, booking_payload):
        asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        start, end = gateway.list_calls[0]
        assert start == datetime(2024, 6, 1, 14, 0, tzinfo=NY)
        assert end == datetime(2024, 6, 1, 15, 0, tzinfo=NY)

    def test_concurrent_requests_for_same_slot(self, booking_service, booking_payload, db_session):
        """With slot locks only one of two simultaneous requests wins."""

        async def race():
            return await asyncio.gather(
                booking_service.request_booking(BookingCreate(**booking_payload)),
                booking_service.request_booking(BookingCreate(**booking_payload)),
                return_exceptions=True,
            )

        results = asyncio.run(race())

        assert sum(1 for r in results if isinstance(r, SlotUnavailable)) == 1
        assert count_bookings(db_session) == 1


# ==================== Gateway Failures ====================

class TestGatewayFailures:
    """Tests for calendar failures before and after persistence."""

    def test_list_failure_is_unreachable_and_nothing_saved(
        self, booking_service, gateway, booking_payload, db_session
    ):
        gateway.list_error = GatewayUnreachable("Could not reach Google Calendar.")

        with pytest.raises(GatewayUnreachable):
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert count_bookings(db_session) == 0
        assert gateway.created == []

    def test_unexpected_list_error_becomes_unreachable(
        self, booking_service, gateway, booking_payload, db_session
    ):
        gateway.list_error = ConnectionResetError("socket closed")

        with pytest.raises(GatewayUnreachable) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert exc_info.value.code == "calendar_unreachable"
        assert count_bookings(db_session) == 0

    def test_create_failure_leaves_pending_booking(
        self, booking_service, gateway, notifier, booking_payload, db_session
    ):
        gateway.create_error = GatewayRejected("Google Calendar refused the event (400).")

        with pytest.raises(GatewayRejected) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        booking = db_session.query(Booking).one()
        assert exc_info.value.booking_id == booking.id
        assert booking.status == "pending"
        assert booking.confirmed is False
        assert booking.google_calendar_event_id is None
        assert booking.calendar_sync_error.startswith("calendar_rejected")
        assert notifier.calls == []
        assert booking_service.get_unconfirmed_bookings() == [booking]

    def test_unexpected_create_error_becomes_unreachable(
        self, booking_service, gateway, booking_payload, db_session
    ):
        gateway.create_error = TimeoutError("read timed out")

        with pytest.raises(GatewayUnreachable) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        booking = db_session.query(Booking).one()
        assert exc_info.value.booking_id == booking.id
        assert exc_info.value.to_detail()["bookingId"] == booking.id
        assert "read timed out" in booking.calendar_sync_error


# ==================== Validation ====================

class TestValidation:
    """Tests for input checks that run before the calendar is touched."""

    def test_past_appointment_is_rejected(self, booking_service, gateway, booking_payload):
        booking_payload["appointmentDate"] = "2024-04-01T14:00:00-04:00"

        with pytest.raises(ValidationError):
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert gateway.list_calls == []

    def test_appointment_at_current_instant_is_rejected(self, booking_service, fixed_now, booking_payload):
        booking_payload["appointmentDate"] = fixed_now.isoformat()

        with pytest.raises(ValidationError):
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

    def test_unknown_service_is_rejected(self, booking_service, gateway, booking_payload):
        booking_payload["serviceId"] = 9999

        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert "9999" in exc_info.value.message
        assert gateway.list_calls == []

    def test_naive_time_is_business_local(self, booking_service, gateway, booking_payload):
        booking_payload["appointmentDate"] = "2024-06-01T14:00:00"

        outcome = asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.booking.appointment_date == datetime(2024, 6, 1, 18, 0)

    def test_duration_is_configurable(self, db_session, gateway, notifier, fixed_now, booking_payload):
        service = BookingService(
            db_session,
            gateway,
            notifier,
            timezone_name="America/New_York",
            duration_minutes=90,
            clock=lambda: fixed_now,
        )

        outcome = asyncio.run(service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.booking.appointment_end == datetime(2024, 6, 1, 19, 30)
        assert gateway.created[0].attendees == ["jane@example.com"]

    def test_non_positive_duration_is_rejected(self, db_session, gateway, notifier):
        with pytest.raises(ValueError):
            BookingService(db_session, gateway, notifier, "America/New_York", duration_minutes=0)


# ==================== Persistence and Notification ====================

class TestSideEffects:
    """Tests for local store failures and notification outcomes."""

    def test_insert_failure_is_persistence_error(
        self, booking_service, gateway, booking_payload, db_session, monkeypatch
    ):
        def failing_commit():
            raise OperationalError("INSERT INTO bookings", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert exc_info.value.status_code == 500
        assert gateway.created == []

    def test_confirm_failure_keeps_orphaned_event_reportable(
        self, booking_service, gateway, notifier, booking_payload, db_session, monkeypatch
    ):
        """A failed confirm commit leaves a pending row listing the created event."""

        def failing_confirm(db, booking, event_id):
            db.rollback()
            raise PersistenceError("The calendar event was created but the booking could not be confirmed.")

        monkeypatch.setattr(BookingRepository, "mark_confirmed", staticmethod(failing_confirm))

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        db_session.expire_all()
        booking = db_session.query(Booking).one()
        assert len(gateway.created) == 1
        assert exc_info.value.booking_id == booking.id
        assert exc_info.value.to_detail()["bookingId"] == booking.id
        assert booking.status == "pending"
        assert booking.confirmed is False
        assert booking.google_calendar_event_id == "evt_1"
        assert "evt_1" in booking.calendar_sync_error
        assert booking_service.get_unconfirmed_bookings() == [booking]
        assert notifier.calls == []

    def test_sync_failure_write_error_carries_booking_id(
        self, booking_service, gateway, booking_payload, db_session, monkeypatch
    ):
        def failing_record(db, booking, reason, event_id=None):
            db.rollback()
            raise PersistenceError("The booking sync failure could not be recorded.")

        gateway.create_error = GatewayRejected()
        monkeypatch.setattr(BookingRepository, "record_sync_failure", staticmethod(failing_record))

        with pytest.raises(PersistenceError) as exc_info:
            asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert exc_info.value.booking_id == db_session.query(Booking).one().id

    def test_notification_failure_still_confirms(self, booking_service, notifier, booking_payload):
        notifier.error = RuntimeError("smtp down")

        outcome = asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.booking.confirmed is True
        assert outcome.notification_sent is False

    def test_partial_notification_is_reported(self, booking_service, notifier, booking_payload):
        notifier.result = False

        outcome = asyncio.run(booking_service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.notification_sent is False

    def test_without_slot_locks(self, db_session, gateway, notifier, fixed_now, booking_payload):
        service = BookingService(
            db_session, gateway, notifier, "America/New_York", slot_locks=None, clock=lambda: fixed_now
        )

        outcome = asyncio.run(service.request_booking(BookingCreate(**booking_payload)))

        assert outcome.booking.status == "confirmed"


# ==================== Availability ====================

class TestAvailability:
    """Tests for open slot calculation."""

    def make_service(self, gateway, now):
        return AvailabilityService(
            gateway,
            timezone_name="America/New_York",
            open_hour=9,
            close_hour=17,
            duration_minutes=60,
            clock=lambda: now,
        )

    def test_busy_hours_are_removed(self, gateway, fixed_now):
        gateway.add_busy(datetime(2024, 6, 3, 9, 0, tzinfo=NY), datetime(2024, 6, 3, 9, 30, tzinfo=NY))
        gateway.add_busy(datetime(2024, 6, 3, 12, 30, tzinfo=NY), datetime(2024, 6, 3, 14, 0, tzinfo=NY))

        result = asyncio.run(self.make_service(gateway, fixed_now).get_available_slots(date(2024, 6, 3)))

        assert result.calendarAvailable is True
        assert [s.hour for s in result.slots] == [10, 11, 14, 15, 16]
        assert result.slots[0].formatted == "10:00 AM"

    def test_past_slots_are_removed(self, gateway):
        now = datetime(2024, 6, 3, 11, 30, tzinfo=NY).astimezone(timezone.utc)

        result = asyncio.run(self.make_service(gateway, now).get_available_slots(date(2024, 6, 3)))

        assert [s.hour for s in result.slots] == [12, 13, 14, 15, 16]

    def test_calendar_error_returns_unchecked_grid(self, gateway, fixed_now):
        gateway.list_error = GatewayUnreachable()

        result = asyncio.run(self.make_service(gateway, fixed_now).get_available_slots(date(2024, 6, 3)))

        assert result.calendarAvailable is False
        assert len(result.slots) == 8
        assert result.message

    def test_whole_day_is_queried(self, gateway, fixed_now):
        asyncio.run(self.make_service(gateway, fixed_now).get_available_slots(date(2024, 6, 3)))

        start, end = gateway.list_calls[0]
        assert start == datetime(2024, 6, 3, 0, 0, tzinfo=NY)
        assert end - start == timedelta(days=1)


# ==================== Slot Locks ====================

class TestSlotLockRegistry:
    """Tests for the per-day lock registry."""

    def test_bucket_is_local_day(self):
        late_evening = datetime(2024, 6, 1, 23, 30, tzinfo=NY)
        w = TimeWindow.starting_at(late_evening, timedelta(hours=1))
        assert SlotLockRegistry.bucket_key(w, "America/New_York") == "2024-06-01"
        assert SlotLockRegistry.bucket_key(w, "UTC") == "2024-06-02"

    def test_locks_are_released_after_use(self):
        registry = SlotLockRegistry()

        async def use():
            async with registry.hold("2024-06-01"):
                assert registry.active_buckets() == ["2024-06-01"]

        asyncio.run(use())
        assert registry.active_buckets() == []

    def test_same_bucket_is_serialized(self):
        registry = SlotLockRegistry()
        order = []

        async def worker(name):
            async with registry.hold("2024-06-01"):
                order.append(f"{name}-in")
                await asyncio.sleep(0.01)
                order.append(f"{name}-out")

        async def run():
            await asyncio.gather(worker("a"), worker("b"))

        asyncio.run(run())
        assert order == ["a-in", "a-out", "b-in", "b-out"]
