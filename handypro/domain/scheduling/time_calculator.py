"""Time window math for appointments

All windows are half-open ``[start, end)`` and timezone-aware. Two windows
overlap iff ``a.start < b.end and b.start < a.end``, so back-to-back
appointments never collide.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeWindow bounds must be timezone-aware")
        if not self.start < self.end:
            raise ValueError("TimeWindow start must be before end")

    @classmethod
    def starting_at(cls, start: datetime, duration: timedelta) -> "TimeWindow":
        return cls(start=start, end=start + duration)

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeWindow") -> bool:
        return overlaps(self, other)

    def astimezone(self, tz) -> "TimeWindow":
        return TimeWindow(self.start.astimezone(tz), self.end.astimezone(tz))


def overlaps(a: TimeWindow, b: TimeWindow) -> bool:
    """Half-open interval intersection test; symmetric and reflexive"""
    return a.start < b.end and b.start < a.end


def parse_iso_datetime(value: str, default_tz=timezone.utc) -> datetime:
    """Parse an ISO-8601 timestamp; a trailing Z and naive values are accepted.

    Naive timestamps are interpreted in ``default_tz``.
    """
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def to_utc_naive(value: datetime) -> datetime:
    """Storage form: UTC with tzinfo stripped (portable across SQLite and PostgreSQL)"""
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def from_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def business_hour_windows(
    day: date, tz_name: str, open_hour: int, close_hour: int, slot_minutes: int
) -> list[TimeWindow]:
    """Every slot of ``slot_minutes`` that fits inside business hours on ``day``"""
    tz = ZoneInfo(tz_name)
    step = timedelta(minutes=slot_minutes)
    cursor = datetime.combine(day, time(hour=open_hour), tzinfo=tz)
    closing = datetime.combine(day, time(hour=close_hour), tzinfo=tz)

    windows = []
    while cursor + step <= closing:
        windows.append(TimeWindow.starting_at(cursor, step))
        cursor += step
    return windows


def day_bounds(day: date, tz_name: str) -> TimeWindow:
    """The whole calendar day in the business timezone"""
    tz = ZoneInfo(tz_name)
    start = datetime.combine(day, time.min, tzinfo=tz)
    return TimeWindow(start, datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz))
