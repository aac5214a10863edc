"""Booking errors - each carries a stable reason code and the HTTP status it maps to"""

from typing import Optional


class BookingError(Exception):
    """Base class for every failure the booking workflow reports to callers"""

    code = "booking_error"
    status_code = 400
    default_message = "The booking could not be completed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        # Set when the failure happened after the booking row was written
        self.booking_id: Optional[int] = None
        super().__init__(self.message)

    def to_detail(self) -> dict:
        detail = {"code": self.code, "message": self.message}
        if self.booking_id is not None:
            detail["bookingId"] = self.booking_id
        return detail


class ValidationError(BookingError):
    code = "validation_error"
    status_code = 422
    default_message = "The booking request is invalid."


class SlotUnavailable(BookingError):
    code = "slot_unavailable"
    status_code = 409
    default_message = "This time slot is already booked. Please select a different time."


class GatewayUnreachable(BookingError):
    code = "calendar_unreachable"
    status_code = 503
    default_message = "The calendar service is temporarily unavailable. Please try again shortly."


class GatewayRejected(BookingError):
    code = "calendar_rejected"
    status_code = 502
    default_message = "The calendar service refused to create the appointment."


class PersistenceError(BookingError):
    code = "persistence_error"
    status_code = 500
    default_message = "The booking could not be saved."
