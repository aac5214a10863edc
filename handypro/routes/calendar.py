"""
Google Calendar Admin Routes
Diagnostics for the business calendar connection
"""

import logging
from datetime import date, datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query

from ..auth import require_admin
from ..domain.scheduling.errors import BookingError
from ..domain.scheduling.router import get_availability_service
from ..domain.scheduling.schemas import AvailableSlotsResponse
from ..domain.scheduling.service import AvailabilityService
from ..models import User
from ..services.google_calendar_service import (
    GoogleCalendarGateway,
    get_calendar_gateway,
    mask_credential,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/calendar", tags=["calendar"])

INVALID_GRANT_TIPS = [
    "If you're seeing 'invalid_grant' errors, you need to generate a new refresh token",
    "The refresh token may have expired or been revoked by Google",
    "After updating GOOGLE_CALENDAR_REFRESH_TOKEN, call POST /calendar/refresh-client",
]


@router.get("/available-slots", response_model=AvailableSlotsResponse)
async def get_calendar_available_slots(
    day: date = Query(..., alias="date"),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Same as /bookings/available-slots"""
    return await service.get_available_slots(day)


@router.get("/diagnostics")
async def get_calendar_diagnostics(
    _admin: User = Depends(require_admin),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
):
    """Masked configuration plus a live read of the next 24 hours"""
    now = datetime.now(timezone.utc)
    error_message = None
    try:
        await gateway.list_events(now, now + timedelta(hours=24))
        has_errors = False
    except BookingError as e:
        has_errors = True
        error_message = e.message
        logger.warning(f"⚠️ Calendar diagnostics probe failed: {e.message}")

    return {
        "configuration": {
            "clientConfigured": bool(gateway.client_id),
            "clientSecretConfigured": bool(gateway.client_secret),
            "refreshTokenConfigured": bool(gateway.refresh_token),
            "clientId": mask_credential(gateway.client_id),
            "refreshToken": mask_credential(gateway.refresh_token),
            "calendarId": gateway.calendar_id,
            "timeoutSeconds": gateway.timeout,
        },
        "status": {
            "hasErrors": has_errors,
            "lastError": gateway.last_error,
            "errorMessage": error_message,
            "needsTokenRefresh": has_errors and gateway.last_error == "invalid_grant",
            "lastChecked": now.isoformat(),
        },
        "tips": INVALID_GRANT_TIPS,
    }


@router.post("/refresh-client")
async def refresh_calendar_client(
    _admin: User = Depends(require_admin),
    gateway: GoogleCalendarGateway = Depends(get_calendar_gateway),
):
    """Drop the cached access token so the next call re-authenticates"""
    gateway.reset_token()
    logger.info("🔄 Calendar access token cleared")
    return {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "message": "Calendar client successfully refreshed",
    }
