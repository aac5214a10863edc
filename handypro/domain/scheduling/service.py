"""Booking service - conflict-checked appointment booking and availability"""

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ...models import Booking, Service
from ...services.google_calendar_service import CalendarGateway, EventDetails
from ...shared.validators import validate_future_datetime
from .errors import (
    BookingError,
    GatewayUnreachable,
    PersistenceError,
    SlotUnavailable,
    ValidationError,
)
from .locks import SlotLockRegistry
from .notifications import BookingNotifier
from .repository import BookingRepository
from .schemas import AvailableSlotsResponse, BookingCreate, TimeSlot
from .time_calculator import (
    TimeWindow,
    business_hour_windows,
    day_bounds,
    overlaps,
    to_utc_naive,
)

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class BookingOutcome:
    booking: Booking
    notification_sent: bool


class BookingService:
    """Orchestrates a booking: calendar check, pending insert, event creation, confirm, notify.

    The calendar is the source of truth for conflicts. Steps are not
    transactional: if event creation fails after the insert, the booking
    stays pending with ``calendar_sync_error`` set and the gateway error
    propagates to the caller. A failed confirm after the event exists also
    leaves it pending, with the orphaned event id recorded.
    """

    def __init__(
        self,
        db: Session,
        gateway: CalendarGateway,
        notifier: BookingNotifier,
        timezone_name: str,
        duration_minutes: int = 60,
        internal_emails: Optional[list[str]] = None,
        slot_locks: Optional[SlotLockRegistry] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        if duration_minutes <= 0:
            raise ValueError("duration_minutes must be positive")
        self.db = db
        self.gateway = gateway
        self.notifier = notifier
        self.timezone_name = timezone_name
        self.duration = timedelta(minutes=duration_minutes)
        self.internal_emails = internal_emails or []
        self.slot_locks = slot_locks
        self.clock = clock
        self.repo = BookingRepository()

    # ---- Queries ----

    def get_bookings(self, email: Optional[str] = None) -> list[Booking]:
        return self.repo.get_bookings(self.db, email)

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.repo.get_booking_by_id(self.db, booking_id)

    def get_unconfirmed_bookings(self) -> list[Booking]:
        return self.repo.get_unconfirmed_bookings(self.db)

    # ---- Booking workflow ----

    def build_window(self, appointment_date: datetime) -> TimeWindow:
        """Validated appointment window; offset-less input is read as business-local time"""
        if appointment_date.tzinfo is None:
            appointment_date = appointment_date.replace(tzinfo=ZoneInfo(self.timezone_name))
        try:
            validate_future_datetime(appointment_date, now=self.clock())
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return TimeWindow.starting_at(appointment_date, self.duration)

    async def find_conflicts(self, window: TimeWindow) -> list:
        """Calendar events overlapping ``window``; any read failure is GatewayUnreachable"""
        try:
            events = await self.gateway.list_events(window.start, window.end)
        except BookingError:
            raise
        except Exception as e:
            logger.error(f"❌ Calendar availability check failed: {e}")
            raise GatewayUnreachable() from e
        return [event for event in events if overlaps(event.window, window)]

    def _event_details(self, booking: Booking, window: TimeWindow) -> EventDetails:
        description_lines = [
            "Client Details:",
            f"Name: {booking.client_name}",
            f"Email: {booking.client_email}",
            f"Phone: {booking.client_phone}",
        ]
        if booking.notes:
            description_lines += ["", f"Additional Notes: {booking.notes}"]

        attendees = [booking.client_email]
        attendees += [e for e in self.internal_emails if e != booking.client_email]

        return EventDetails(
            summary=f"Service Appointment - {booking.client_name}",
            description="\n".join(description_lines),
            window=window,
            timezone=self.timezone_name,
            attendees=attendees,
        )

    def _leave_pending(
        self, booking: Booking, booking_id: int, reason: str, event_id: Optional[str] = None
    ) -> None:
        try:
            self.repo.record_sync_failure(self.db, booking, reason, event_id=event_id)
        except PersistenceError as e:
            logger.error(f"❌ Could not record sync failure for booking {booking_id}: {e.message}")
            e.booking_id = booking_id
            raise

    async def request_booking(self, data: BookingCreate) -> BookingOutcome:
        """Book ``data`` if its window is free on the calendar.

        Raises ValidationError, SlotUnavailable, GatewayUnreachable,
        GatewayRejected or PersistenceError.
        """
        window = self.build_window(data.appointmentDate)

        if not self.repo.service_exists(self.db, data.serviceId):
            raise ValidationError(f"Service {data.serviceId} does not exist.")

        logger.info(f"📥 Booking request for {window.start.isoformat()} ({data.clientEmail})")

        if self.slot_locks is not None:
            guard = self.slot_locks.hold(SlotLockRegistry.bucket_key(window, self.timezone_name))
        else:
            guard = nullcontext()

        async with guard:
            conflicts = await self.find_conflicts(window)
            if conflicts:
                logger.warning(
                    f"⚠️ Slot {window.start.isoformat()} unavailable - {len(conflicts)} conflicting event(s)"
                )
                raise SlotUnavailable()

            booking = self.repo.create_pending_booking(
                self.db,
                service_id=data.serviceId,
                client_name=data.clientName,
                client_email=data.clientEmail,
                client_phone=data.clientPhone,
                appointment_date=to_utc_naive(window.start),
                appointment_end=to_utc_naive(window.end),
                notes=data.notes,
            )
            booking_id = booking.id
            logger.info(f"✅ Booking {booking_id} saved as pending")

            try:
                created = await self.gateway.create_event(self._event_details(booking, window))
            except BookingError as e:
                logger.error(f"❌ Calendar event failed for booking {booking_id}, left pending: {e.message}")
                self._leave_pending(booking, booking_id, f"{e.code}: {e.message}")
                e.booking_id = booking_id
                raise
            except Exception as e:
                logger.error(f"❌ Calendar event failed for booking {booking_id}, left pending: {e}")
                self._leave_pending(booking, booking_id, f"calendar_unreachable: {e}")
                error = GatewayUnreachable()
                error.booking_id = booking_id
                raise error from e

            try:
                booking = self.repo.mark_confirmed(self.db, booking, created.id)
            except PersistenceError as e:
                # The calendar event already exists; its id stays on the pending row
                logger.error(
                    f"❌ Booking {booking_id} not confirmed, calendar event {created.id} is orphaned: {e.message}"
                )
                self._leave_pending(
                    booking,
                    booking_id,
                    f"{e.code}: confirm failed after calendar event {created.id} was created",
                    event_id=created.id,
                )
                e.booking_id = booking_id
                raise
            logger.info(f"✅ Booking {booking_id} confirmed with calendar event {created.id}")

        service = self.db.query(Service).filter(Service.id == booking.service_id).first()
        service_name = service.name if service else "Unknown Service"
        try:
            notification_sent = await self.notifier.booking_confirmed(booking, service_name)
        except Exception as e:
            logger.error(f"❌ Booking {booking.id} notification failed: {e}")
            notification_sent = False

        return BookingOutcome(booking=booking, notification_sent=notification_sent)


class AvailabilityService:
    """Open appointment slots for a day, derived from the calendar"""

    def __init__(
        self,
        gateway: CalendarGateway,
        timezone_name: str,
        open_hour: int,
        close_hour: int,
        duration_minutes: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.gateway = gateway
        self.timezone_name = timezone_name
        self.open_hour = open_hour
        self.close_hour = close_hour
        self.duration_minutes = duration_minutes
        self.clock = clock

    def _to_slot(self, window: TimeWindow) -> TimeSlot:
        local = window.start.astimezone(ZoneInfo(self.timezone_name))
        return TimeSlot(
            start=window.start,
            end=window.end,
            hour=local.hour,
            minute=local.minute,
            formatted=local.strftime("%I:%M %p").lstrip("0"),
        )

    async def get_available_slots(self, day: date) -> AvailableSlotsResponse:
        candidates = business_hour_windows(
            day, self.timezone_name, self.open_hour, self.close_hour, self.duration_minutes
        )

        try:
            bounds = day_bounds(day, self.timezone_name)
            events = await self.gateway.list_events(bounds.start, bounds.end)
        except Exception as e:
            # Fall back to the full business-hours grid, flagged so callers know it is unchecked
            logger.error(f"❌ Could not read calendar for {day.isoformat()}, returning business hours: {e}")
            return AvailableSlotsResponse(
                date=day.isoformat(),
                timezone=self.timezone_name,
                calendarAvailable=False,
                slots=[self._to_slot(w) for w in candidates],
                message="Calendar is unavailable; times are not yet confirmed.",
            )

        now = self.clock()
        free = [
            w
            for w in candidates
            if w.start > now and not any(overlaps(w, event.window) for event in events)
        ]
        logger.info(f"📅 {len(free)} of {len(candidates)} slots free on {day.isoformat()}")
        return AvailableSlotsResponse(
            date=day.isoformat(),
            timezone=self.timezone_name,
            calendarAvailable=True,
            slots=[self._to_slot(w) for w in free],
        )
