"""
Datetime utilities for wall-clock scheduling.

The engine compares times as minute-of-day integers on a single canonical
venue-local clock. Timezone conversion happens once, at the edge, in
``venue_now`` / ``to_venue_local``; everything past that point is naive
local time.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from config import settings

MINUTES_PER_DAY = 24 * 60

_HHMM_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC datetime with timezone info
    """
    return datetime.now(timezone.utc)


def venue_now(tz_name: Optional[str] = None) -> datetime:
    """
    Current wall-clock time at the venue, as a naive datetime.

    Args:
        tz_name: IANA zone name, defaults to settings.timezone
    """
    zone = ZoneInfo(tz_name or settings.timezone)
    return datetime.now(zone).replace(tzinfo=None)


def to_venue_local(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Normalize a datetime to naive venue-local time.

    Naive input is assumed to be venue-local already and returned unchanged.
    """
    if dt.tzinfo is None:
        return dt
    zone = ZoneInfo(tz_name or settings.timezone)
    return dt.astimezone(zone).replace(tzinfo=None)


def parse_hhmm(value: str) -> time:
    """
    Parse an ``HH:MM`` wall-clock string.

    Raises:
        ValueError: If the string is not a valid 24h time
    """
    if not isinstance(value, str):
        raise ValueError(f"Invalid time: {value!r}")
    match = _HHMM_RE.match(value.strip())
    if not match:
        raise ValueError(f"Invalid time format: {value!r}. Use HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(t: time) -> str:
    return t.strftime("%H:%M")


def time_to_minutes(t: time) -> int:
    """Minutes since midnight; seconds are ignored."""
    return t.hour * 60 + t.minute


def minutes_to_time(minutes: int) -> time:
    """
    Inverse of ``time_to_minutes``.

    Raises:
        ValueError: If minutes fall outside a single day
    """
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Minute of day out of range: {minutes}")
    return time(minutes // 60, minutes % 60)


def day_of_week(day: date) -> int:
    """Weekday number as availability rules store it: 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def combine(day: date, t: time) -> datetime:
    return datetime.combine(day, t)


def hours_between(start: datetime, end: datetime) -> float:
    return (end - start) / timedelta(hours=1)
