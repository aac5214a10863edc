"""Scheduling domain schemas - Pydantic models for booking requests and responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_serializer, field_validator

from ...shared.validators import validate_contact_phone, validate_required_email
from .time_calculator import from_utc_naive


class BookingCreate(BaseModel):
    """Schema for a public booking request"""

    serviceId: int
    clientName: str
    clientEmail: str
    clientPhone: str
    appointmentDate: datetime  # ISO-8601; values without an offset use the business timezone
    notes: Optional[str] = None

    @field_validator("clientName")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Client name is required")
        return v

    @field_validator("clientEmail")
    @classmethod
    def validate_email(cls, v):
        return validate_required_email(v)

    @field_validator("clientPhone")
    @classmethod
    def validate_phone(cls, v):
        return validate_contact_phone(v)

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v):
        if v is not None and not v.strip():
            return None
        return v


class BookingResponse(BaseModel):
    """Schema for booking response"""

    id: int
    serviceId: int
    clientName: str
    clientEmail: str
    clientPhone: str
    appointmentDate: datetime
    appointmentEnd: datetime
    notes: Optional[str] = None
    status: str
    confirmed: bool
    googleCalendarEventId: Optional[str] = None
    calendarSyncError: Optional[str] = None
    createdAt: Optional[datetime] = None

    @field_serializer("appointmentDate", "appointmentEnd")
    def serialize_utc(self, value: datetime):
        return from_utc_naive(value).isoformat()

    @classmethod
    def from_booking(cls, booking, **extra):
        return cls(
            id=booking.id,
            serviceId=booking.service_id,
            clientName=booking.client_name,
            clientEmail=booking.client_email,
            clientPhone=booking.client_phone,
            appointmentDate=booking.appointment_date,
            appointmentEnd=booking.appointment_end,
            notes=booking.notes,
            status=booking.status,
            confirmed=booking.confirmed,
            googleCalendarEventId=booking.google_calendar_event_id,
            calendarSyncError=booking.calendar_sync_error,
            createdAt=booking.created_at,
            **extra,
        )


class BookingOutcomeResponse(BookingResponse):
    """Booking plus whether the confirmation emails went out"""

    notificationSent: bool = False


class TimeSlot(BaseModel):
    start: datetime
    end: datetime
    hour: int
    minute: int
    formatted: str  # e.g. "9:00 AM" in the business timezone


class AvailableSlotsResponse(BaseModel):
    date: str
    timezone: str
    calendarAvailable: bool
    slots: list[TimeSlot]
    message: Optional[str] = None
