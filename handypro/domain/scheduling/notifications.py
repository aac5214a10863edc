"""Booking confirmation emails to the client and internal staff"""

import logging
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from ...email_service import send_booking_confirmation_to_client, send_booking_notification_to_staff
from ...models import Booking
from ...utils.sanitization import sanitize_multiline, sanitize_string
from .time_calculator import from_utc_naive

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    async def booking_confirmed(self, booking: Booking, service_name: str) -> bool:
        """Return True only if every notification was handed to the mail provider"""
        ...


def format_appointment(booking: Booking, timezone_name: str) -> tuple[str, str]:
    """Human readable (date, time range) in the business timezone"""
    tz = ZoneInfo(timezone_name)
    start = from_utc_naive(booking.appointment_date).astimezone(tz)
    end = from_utc_naive(booking.appointment_end).astimezone(tz)
    date_label = start.strftime("%A, %B %d, %Y")
    time_label = (
        f"{start.strftime('%I:%M %p').lstrip('0')} - {end.strftime('%I:%M %p').lstrip('0')} "
        f"{start.tzname()}"
    )
    return date_label, time_label


class EmailBookingNotifier:
    """Sends booking emails; failures are logged and reported, never raised"""

    def __init__(self, internal_recipients: list[str], timezone_name: str):
        self.internal_recipients = internal_recipients
        self.timezone_name = timezone_name

    async def booking_confirmed(self, booking: Booking, service_name: str) -> bool:
        date_label, time_label = format_appointment(booking, self.timezone_name)
        notes: Optional[str] = sanitize_multiline(booking.notes)
        all_sent = True

        try:
            await send_booking_confirmation_to_client(
                client_email=booking.client_email,
                client_name=sanitize_string(booking.client_name),
                service_name=sanitize_string(service_name),
                appointment_date=date_label,
                appointment_time=time_label,
                notes=notes,
            )
            logger.info(f"✅ Booking confirmation sent to client for booking {booking.id}")
        except Exception as e:
            all_sent = False
            logger.error(f"❌ Failed to send booking confirmation for booking {booking.id}: {e}")

        if not self.internal_recipients:
            logger.warning("⚠️ INTERNAL_NOTIFICATION_EMAILS not set - staff not notified")
            return all_sent

        try:
            await send_booking_notification_to_staff(
                recipients=self.internal_recipients,
                client_name=sanitize_string(booking.client_name),
                client_email=sanitize_string(booking.client_email),
                client_phone=sanitize_string(booking.client_phone),
                service_name=sanitize_string(service_name),
                appointment_date=date_label,
                appointment_time=time_label,
                notes=notes,
            )
            logger.info(f"✅ Staff notified of booking {booking.id}")
        except Exception as e:
            all_sent = False
            logger.error(f"❌ Failed to notify staff of booking {booking.id}: {e}")

        return all_sent
