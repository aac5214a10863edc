"""Booking router - FastAPI endpoints for appointment booking"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...auth import require_admin
from ...config import (
    BOOKING_DURATION_MINUTES,
    BOOKING_SERIALIZE_SLOTS,
    BUSINESS_CLOSE_HOUR,
    BUSINESS_OPEN_HOUR,
    BUSINESS_TIMEZONE,
    INTERNAL_NOTIFICATION_EMAILS,
)
from ...database import get_db
from ...models import User
from ...rate_limiter import create_rate_limiter
from ...services.google_calendar_service import GoogleCalendarGateway, get_calendar_gateway
from .errors import BookingError
from .locks import slot_locks
from .notifications import EmailBookingNotifier
from .schemas import AvailableSlotsResponse, BookingCreate, BookingOutcomeResponse, BookingResponse
from .service import AvailabilityService, BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])

booking_rate_limit = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="bookings")


def get_booking_notifier() -> EmailBookingNotifier:
    """Dependency injection for booking notifications"""
    return EmailBookingNotifier(INTERNAL_NOTIFICATION_EMAILS, BUSINESS_TIMEZONE)


def get_booking_service(
    db: Session = Depends(get_db),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
    notifier: EmailBookingNotifier = Depends(get_booking_notifier),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(
        db,
        gateway,
        notifier,
        timezone_name=BUSINESS_TIMEZONE,
        duration_minutes=BOOKING_DURATION_MINUTES,
        internal_emails=INTERNAL_NOTIFICATION_EMAILS,
        slot_locks=slot_locks if BOOKING_SERIALIZE_SLOTS else None,
    )


def get_availability_service(
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(
        gateway,
        timezone_name=BUSINESS_TIMEZONE,
        open_hour=BUSINESS_OPEN_HOUR,
        close_hour=BUSINESS_CLOSE_HOUR,
        duration_minutes=BOOKING_DURATION_MINUTES,
    )


def to_http_exception(error: BookingError) -> HTTPException:
    return HTTPException(status_code=error.status_code, detail=error.to_detail())


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.post("", response_model=BookingOutcomeResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    service: BookingService = Depends(get_booking_service),
    _: None = Depends(booking_rate_limit),
):
    """Book an appointment if the calendar slot is free"""
    try:
        outcome = await service.request_booking(data)
    except BookingError as e:
        logger.warning(f"⚠️ Booking rejected ({e.code}): {e.message}")
        raise to_http_exception(e) from e

    return BookingOutcomeResponse.from_booking(
        outcome.booking, notificationSent=outcome.notification_sent
    )


@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    day: date = Query(..., alias="date", description="Day to check, YYYY-MM-DD"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Open hourly slots for a day in the business timezone"""
    return await service.get_available_slots(day)


# ============================================================================
# ADMIN ENDPOINTS
# ============================================================================


@router.get("", response_model=list[BookingResponse])
async def get_bookings(
    email: Optional[str] = Query(None),
    _admin: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Get all bookings, optionally filtered by client email"""
    return [BookingResponse.from_booking(b) for b in service.get_bookings(email)]


@router.get("/unconfirmed", response_model=list[BookingResponse])
async def get_unconfirmed_bookings(
    _admin: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    """Bookings saved but never confirmed because the calendar step failed"""
    return [BookingResponse.from_booking(b) for b in service.get_unconfirmed_bookings()]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    _admin: User = Depends(require_admin),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return BookingResponse.from_booking(booking)


__all__ = [
    "router",
    "get_booking_service",
    "get_booking_notifier",
    "get_availability_service",
    "create_booking",
    "get_available_slots",
    "get_bookings",
    "get_unconfirmed_bookings",
    "get_booking",
]
