# File: tests/unit/test_google_calendar_service.py
"""
Unit tests for the Google Calendar gateway.
HTTP traffic is served by httpx.MockTransport; nothing leaves the process.
"""

import asyncio
import json
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import httpx
import pytest

from handypro.domain.scheduling.errors import GatewayRejected, GatewayUnreachable
from handypro.domain.scheduling.time_calculator import TimeWindow
from handypro.services.google_calendar_service import (
    GOOGLE_TOKEN_URL,
    EventDetails,
    GoogleCalendarGateway,
    build_event_body,
    mask_credential,
    parse_event_item,
)

NY = ZoneInfo("America/New_York")
QUERY_START = datetime(2024, 6, 1, 9, 0, tzinfo=NY)
QUERY_END = datetime(2024, 6, 1, 10, 0, tzinfo=NY)


class GoogleStub:
    """Routes token and events requests; records everything it sees."""

    def __init__(self, token_status=200, events_status=200, insert_status=200, items=None):
        self.token_status = token_status
        self.events_status = events_status
        self.insert_status = insert_status
        self.items = items or []
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if str(request.url) == GOOGLE_TOKEN_URL:
            if self.token_status != 200:
                return httpx.Response(self.token_status, json={"error": "invalid_grant"})
            return httpx.Response(200, json={"access_token": "ya29.token", "expires_in": 3600})
        if request.method == "GET":
            if self.events_status != 200:
                return httpx.Response(self.events_status, json={"error": {"code": self.events_status}})
            return httpx.Response(200, json={"items": self.items})
        if self.insert_status not in (200, 201):
            return httpx.Response(self.insert_status, json={"error": {"status": "INVALID_ARGUMENT"}})
        return httpx.Response(200, json={"id": "evt_google_1", "htmlLink": "https://calendar.google.com/e/1"})

    @property
    def token_requests(self):
        return [r for r in self.requests if str(r.url) == GOOGLE_TOKEN_URL]


def make_gateway(handler, **overrides):
    options = {
        "client_id": "client-id-1234567890.apps.googleusercontent.com",
        "client_secret": "client-secret",
        "refresh_token": "1//refresh-token-abcdefghij",
        "calendar_id": "primary",
        "timeout": 2.0,
        "timezone_name": "America/New_York",
        "transport": httpx.MockTransport(handler),
    }
    options.update(overrides)
    return GoogleCalendarGateway(**options)


def appointment_details():
    return EventDetails(
        summary="Service Appointment - Jane Doe",
        description="Client Details:",
        window=TimeWindow(datetime(2024, 6, 1, 14, 0, tzinfo=NY), datetime(2024, 6, 1, 15, 0, tzinfo=NY)),
        timezone="America/New_York",
        attendees=["jane@example.com", "office@handypro.com"],
    )


# ==================== list_events ====================

class TestListEvents:
    """Tests for reading busy events."""

    def test_parses_timed_events(self):
        stub = GoogleStub(
            items=[
                {
                    "id": "a",
                    "summary": "Existing job",
                    "start": {"dateTime": "2024-06-01T09:00:00-04:00"},
                    "end": {"dateTime": "2024-06-01T09:30:00-04:00"},
                }
            ]
        )
        gateway = make_gateway(stub)

        events = asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert len(events) == 1
        assert events[0].id == "a"
        assert events[0].window.start == QUERY_START
        assert events[0].window.end == datetime(2024, 6, 1, 9, 30, tzinfo=NY)

    def test_sends_window_and_bearer_token(self):
        stub = GoogleStub()
        gateway = make_gateway(stub)

        asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        query = stub.requests[-1]
        assert query.headers["Authorization"] == "Bearer ya29.token"
        assert query.url.params["timeMin"] == QUERY_START.isoformat()
        assert query.url.params["timeMax"] == QUERY_END.isoformat()
        assert query.url.params["singleEvents"] == "true"
        assert "/calendars/primary/events" in query.url.path

    def test_access_token_is_cached(self):
        stub = GoogleStub()
        gateway = make_gateway(stub)

        asyncio.run(gateway.list_events(QUERY_START, QUERY_END))
        asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert len(stub.token_requests) == 1

    def test_reset_token_forces_refresh(self):
        stub = GoogleStub()
        gateway = make_gateway(stub)

        asyncio.run(gateway.list_events(QUERY_START, QUERY_END))
        gateway.reset_token()
        asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert len(stub.token_requests) == 2

    def test_invalid_grant_is_unreachable(self):
        gateway = make_gateway(GoogleStub(token_status=400))

        with pytest.raises(GatewayUnreachable):
            asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert gateway.last_error == "invalid_grant"

    def test_missing_credentials_is_unreachable(self):
        stub = GoogleStub()
        gateway = make_gateway(stub, refresh_token=None)

        with pytest.raises(GatewayUnreachable):
            asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert stub.requests == []
        assert gateway.is_configured is False

    def test_timeout_is_unreachable(self):
        def handler(request):
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(200, json={"access_token": "ya29.token", "expires_in": 3600})
            raise httpx.ReadTimeout("timed out", request=request)

        gateway = make_gateway(handler)

        with pytest.raises(GatewayUnreachable):
            asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert gateway.last_error == "timeout"

    def test_connection_error_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GatewayUnreachable):
            asyncio.run(make_gateway(handler).list_events(QUERY_START, QUERY_END))

    def test_server_error_is_unreachable(self):
        with pytest.raises(GatewayUnreachable):
            asyncio.run(make_gateway(GoogleStub(events_status=500)).list_events(QUERY_START, QUERY_END))

    def test_unauthorized_drops_cached_token(self):
        stub = GoogleStub(events_status=401)
        gateway = make_gateway(stub)

        with pytest.raises(GatewayUnreachable):
            asyncio.run(gateway.list_events(QUERY_START, QUERY_END))

        assert gateway._access_token is None


# ==================== create_event ====================

class TestCreateEvent:
    """Tests for inserting the appointment event."""

    def test_creates_event_and_invites_attendees(self):
        stub = GoogleStub()
        gateway = make_gateway(stub)

        created = asyncio.run(gateway.create_event(appointment_details()))

        assert created.id == "evt_google_1"
        assert created.html_link == "https://calendar.google.com/e/1"
        insert = stub.requests[-1]
        assert insert.method == "POST"
        assert insert.url.params["sendUpdates"] == "all"
        body = json.loads(insert.content)
        assert body["start"] == {"dateTime": "2024-06-01T14:00:00-04:00", "timeZone": "America/New_York"}
        assert body["end"]["dateTime"] == "2024-06-01T15:00:00-04:00"
        assert body["attendees"] == [{"email": "jane@example.com"}, {"email": "office@handypro.com"}]

    def test_refused_insert_is_rejected(self):
        gateway = make_gateway(GoogleStub(insert_status=400))

        with pytest.raises(GatewayRejected) as exc_info:
            asyncio.run(gateway.create_event(appointment_details()))

        assert exc_info.value.status_code == 502
        assert gateway.last_error == "INVALID_ARGUMENT"

    def test_unauthorized_insert_is_unreachable(self):
        with pytest.raises(GatewayUnreachable):
            asyncio.run(make_gateway(GoogleStub(insert_status=401)).create_event(appointment_details()))

    def test_insert_timeout_is_unreachable(self):
        def handler(request):
            if str(request.url) == GOOGLE_TOKEN_URL:
                return httpx.Response(200, json={"access_token": "ya29.token", "expires_in": 3600})
            raise httpx.WriteTimeout("timed out", request=request)

        with pytest.raises(GatewayUnreachable):
            asyncio.run(make_gateway(handler).create_event(appointment_details()))


# ==================== Helpers ====================

class TestEventParsing:
    """Tests for events.list item conversion."""

    def test_all_day_event_blocks_local_day(self):
        fallback = TimeWindow(QUERY_START, QUERY_END)
        event = parse_event_item(
            {"id": "holiday", "start": {"date": "2024-06-01"}, "end": {"date": "2024-06-02"}},
            fallback,
            "America/New_York",
        )
        assert event.window.start == datetime(2024, 6, 1, 0, 0, tzinfo=NY)
        assert event.window.duration == timedelta(days=1)

    def test_event_time_zone_field_is_used_for_naive_times(self):
        event = parse_event_item(
            {
                "id": "la",
                "start": {"dateTime": "2024-06-01T06:00:00", "timeZone": "America/Los_Angeles"},
                "end": {"dateTime": "2024-06-01T07:00:00", "timeZone": "America/Los_Angeles"},
            },
            TimeWindow(QUERY_START, QUERY_END),
            "America/New_York",
        )
        assert event.window.start == QUERY_START

    def test_unusable_times_fall_back_to_query_window(self):
        fallback = TimeWindow(QUERY_START, QUERY_END)
        event = parse_event_item({"id": "broken", "start": {}, "end": {}}, fallback, "America/New_York")
        assert event.window == fallback

    def test_build_event_body_includes_location(self):
        details = appointment_details()
        details.location = "12 Main St"
        assert build_event_body(details)["location"] == "12 Main St"


class TestMaskCredential:
    def test_long_value_shows_ends(self):
        assert mask_credential("abcdefghijklmnop") == "abcde...lmnop"

    def test_short_value_fully_masked(self):
        assert mask_credential("secret") == "******"

    def test_missing_value(self):
        assert mask_credential(None) is None
