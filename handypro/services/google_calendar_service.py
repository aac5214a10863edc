"""
Google Calendar Service
Reads busy events and creates appointment events on the business calendar
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

import httpx

from ..config import (
    BUSINESS_TIMEZONE,
    CALENDAR_TIMEOUT_SECONDS,
    GOOGLE_CALENDAR_CLIENT_ID,
    GOOGLE_CALENDAR_CLIENT_SECRET,
    GOOGLE_CALENDAR_ID,
    GOOGLE_CALENDAR_REFRESH_TOKEN,
)
from ..domain.scheduling.errors import GatewayRejected, GatewayUnreachable
from ..domain.scheduling.time_calculator import TimeWindow, parse_iso_datetime

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_CALENDAR_API = "https://www.googleapis.com/calendar/v3"


@dataclass
class CalendarEvent:
    """An existing event as read back from the calendar"""

    id: Optional[str]
    summary: Optional[str]
    window: TimeWindow


@dataclass
class EventDetails:
    """Everything needed to insert an appointment event"""

    summary: str
    description: str
    window: TimeWindow
    timezone: str
    attendees: list[str] = field(default_factory=list)
    location: Optional[str] = None


@dataclass
class CreatedEvent:
    id: str
    html_link: Optional[str] = None


class CalendarGateway(Protocol):
    async def list_events(self, window_start: datetime, window_end: datetime) -> list[CalendarEvent]:
        ...

    async def create_event(self, details: EventDetails) -> CreatedEvent:
        ...


def build_event_body(details: EventDetails) -> dict:
    """Google Calendar v3 event resource for an appointment"""
    tz = ZoneInfo(details.timezone)
    event_data = {
        "summary": details.summary,
        "description": details.description,
        "start": {
            "dateTime": details.window.start.astimezone(tz).isoformat(),
            "timeZone": details.timezone,
        },
        "end": {
            "dateTime": details.window.end.astimezone(tz).isoformat(),
            "timeZone": details.timezone,
        },
        "attendees": [{"email": email} for email in details.attendees],
    }
    if details.location:
        event_data["location"] = details.location
    return event_data


def _parse_event_time(value: dict, tz_name: str) -> Optional[datetime]:
    if not value:
        return None
    if value.get("dateTime"):
        return parse_iso_datetime(value["dateTime"], ZoneInfo(value.get("timeZone") or tz_name))
    if value.get("date"):
        # All-day events carry a bare date; they block the whole local day
        return parse_iso_datetime(value["date"] + "T00:00:00", ZoneInfo(tz_name))
    return None


def parse_event_item(item: dict, fallback: TimeWindow, tz_name: str) -> CalendarEvent:
    """Convert an events.list item; an unparseable time range blocks the queried window"""
    start = _parse_event_time(item.get("start") or {}, tz_name)
    end = _parse_event_time(item.get("end") or {}, tz_name)
    if start is None or end is None or not start < end:
        logger.warning(f"⚠️ Calendar event {item.get('id')} has no usable time range, treating as busy")
        window = fallback
    else:
        window = TimeWindow(start, end)
    return CalendarEvent(id=item.get("id"), summary=item.get("summary"), window=window)


class GoogleCalendarGateway:
    """Calendar gateway backed by the Google Calendar REST API.

    Authenticates with an offline refresh token and caches the short-lived
    access token in memory. Every request is bounded by ``timeout``; there are
    no retries. Network, timeout and auth failures raise GatewayUnreachable,
    a refused insert raises GatewayRejected.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        refresh_token: Optional[str],
        calendar_id: str = "primary",
        timeout: float = 10.0,
        timezone_name: str = "America/New_York",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.calendar_id = calendar_id
        self.timeout = timeout
        self.timezone_name = timezone_name
        self._transport = transport
        self._access_token: Optional[str] = None
        self._token_expires_at: Optional[datetime] = None
        self.last_error: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.refresh_token)

    def reset_token(self):
        """Forget the cached access token so the next call refreshes it"""
        self._access_token = None
        self._token_expires_at = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self._transport)

    async def _get_access_token(self, client: httpx.AsyncClient) -> str:
        if not self.is_configured:
            self.last_error = "not_configured"
            raise GatewayUnreachable("Google Calendar credentials are not configured.")

        # Reuse the token until it is within 5 minutes of expiring
        if self._access_token and self._token_expires_at > datetime.now(timezone.utc) + timedelta(minutes=5):
            return self._access_token

        logger.info("🔄 Refreshing Google Calendar access token...")
        try:
            response = await client.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "refresh_token": self.refresh_token,
                    "grant_type": "refresh_token",
                },
            )
        except httpx.TimeoutException as e:
            self.last_error = "timeout"
            logger.error(f"❌ Token refresh timed out: {e}")
            raise GatewayUnreachable("Timed out authenticating with Google Calendar.") from e
        except httpx.HTTPError as e:
            self.last_error = "network"
            logger.error(f"❌ Token refresh failed: {e}")
            raise GatewayUnreachable("Could not reach Google Calendar.") from e

        if response.status_code != 200:
            error_code = _error_code(response)
            self.last_error = error_code
            logger.error(f"❌ Token refresh failed ({response.status_code}): {response.text}")
            raise GatewayUnreachable(f"Google Calendar authentication failed ({error_code}).")

        tokens = response.json()
        access_token = tokens.get("access_token")
        if not access_token:
            self.last_error = "missing_access_token"
            logger.error("❌ No access token in refresh response")
            raise GatewayUnreachable("Google Calendar authentication failed.")

        self._access_token = access_token
        self._token_expires_at = datetime.now(timezone.utc) + timedelta(seconds=tokens.get("expires_in", 3600))
        logger.info("✅ Google Calendar token refreshed successfully")
        return access_token

    async def list_events(self, window_start: datetime, window_end: datetime) -> list[CalendarEvent]:
        """Events intersecting ``[window_start, window_end)``"""
        window = TimeWindow(window_start, window_end)
        async with self._client() as client:
            access_token = await self._get_access_token(client)
            try:
                response = await client.get(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
                    headers={"Authorization": f"Bearer {access_token}"},
                    params={
                        "timeMin": window_start.isoformat(),
                        "timeMax": window_end.isoformat(),
                        "singleEvents": "true",
                        "orderBy": "startTime",
                    },
                )
            except httpx.TimeoutException as e:
                self.last_error = "timeout"
                logger.error(f"❌ Calendar events query timed out: {e}")
                raise GatewayUnreachable("Timed out checking calendar availability.") from e
            except httpx.HTTPError as e:
                self.last_error = "network"
                logger.error(f"❌ Calendar events query failed: {e}")
                raise GatewayUnreachable("Could not reach Google Calendar.") from e

        if response.status_code != 200:
            if response.status_code == 401:
                self.reset_token()
            self.last_error = _error_code(response)
            logger.error(f"❌ Failed to list calendar events ({response.status_code}): {response.text}")
            raise GatewayUnreachable("Could not read the calendar to check availability.")

        self.last_error = None
        items = response.json().get("items", [])
        logger.info(f"📅 Found {len(items)} calendar events between {window_start} and {window_end}")
        return [parse_event_item(item, window, self.timezone_name) for item in items]

    async def create_event(self, details: EventDetails) -> CreatedEvent:
        """Insert the appointment and email invitations to attendees"""
        async with self._client() as client:
            access_token = await self._get_access_token(client)
            try:
                response = await client.post(
                    f"{GOOGLE_CALENDAR_API}/calendars/{self.calendar_id}/events",
                    headers={"Authorization": f"Bearer {access_token}"},
                    params={"sendUpdates": "all"},
                    json=build_event_body(details),
                )
            except httpx.TimeoutException as e:
                self.last_error = "timeout"
                logger.error(f"❌ Calendar event creation timed out: {e}")
                raise GatewayUnreachable("Timed out creating the calendar event.") from e
            except httpx.HTTPError as e:
                self.last_error = "network"
                logger.error(f"❌ Calendar event creation failed: {e}")
                raise GatewayUnreachable("Could not reach Google Calendar.") from e

        if response.status_code == 401:
            self.reset_token()
            self.last_error = _error_code(response)
            raise GatewayUnreachable("Google Calendar rejected our credentials.")
        if response.status_code not in [200, 201]:
            self.last_error = _error_code(response)
            logger.error(f"❌ Failed to create calendar event ({response.status_code}): {response.text}")
            raise GatewayRejected(f"Google Calendar refused the event ({response.status_code}).")

        event = response.json()
        event_id = event.get("id")
        if not event_id:
            raise GatewayRejected("Google Calendar did not return an event id.")

        self.last_error = None
        logger.info(f"✅ Google Calendar event created: {event_id}")
        return CreatedEvent(id=event_id, html_link=event.get("htmlLink"))


def _error_code(response: httpx.Response) -> str:
    """Google error identifier such as ``invalid_grant``, falling back to the status code"""
    try:
        body = response.json()
    except ValueError:
        return f"http_{response.status_code}"
    error = body.get("error")
    if isinstance(error, str):
        return error
    if isinstance(error, dict):
        return error.get("status") or str(error.get("code") or response.status_code)
    return f"http_{response.status_code}"


def mask_credential(value: Optional[str]) -> Optional[str]:
    """Show the first and last 5 characters only"""
    if not value:
        return None
    if len(value) <= 10:
        return "*" * len(value)
    return f"{value[:5]}...{value[-5:]}"


_gateway: Optional[GoogleCalendarGateway] = None


def get_calendar_gateway() -> GoogleCalendarGateway:
    """FastAPI dependency; one gateway per process so the access token is reused"""
    global _gateway
    if _gateway is None:
        _gateway = GoogleCalendarGateway(
            client_id=GOOGLE_CALENDAR_CLIENT_ID,
            client_secret=GOOGLE_CALENDAR_CLIENT_SECRET,
            refresh_token=GOOGLE_CALENDAR_REFRESH_TOKEN,
            calendar_id=GOOGLE_CALENDAR_ID,
            timeout=CALENDAR_TIMEOUT_SECONDS,
            timezone_name=BUSINESS_TIMEZONE,
        )
        if not _gateway.is_configured:
            logger.warning("⚠️ Google Calendar credentials missing - bookings will fail until configured")
    return _gateway
