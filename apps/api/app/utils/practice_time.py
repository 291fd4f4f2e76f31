"""Practice-timezone helpers.

Availability is expressed as wall-clock HH:MM in the practice timezone while
appointments are stored as UTC instants. Everything that crosses between the
two goes through here.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.config import settings

logger = logging.getLogger(__name__)

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def practice_timezone() -> ZoneInfo:
    """ZoneInfo for PRACTICE_TIMEZONE, UTC when the name is unknown."""
    try:
        return ZoneInfo(settings.PRACTICE_TIMEZONE)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown PRACTICE_TIMEZONE %r, using UTC", settings.PRACTICE_TIMEZONE)
        return ZoneInfo("UTC")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize to aware UTC. Naive values are practice-local wall clock."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=practice_timezone())
    return value.astimezone(timezone.utc)


def to_local(value: datetime) -> datetime:
    """Aware datetime in the practice timezone."""
    return to_utc(value).astimezone(practice_timezone())


def combine_local(day: date, wall_clock: time) -> datetime:
    """UTC instant for a practice-local date and time of day."""
    return datetime.combine(day, wall_clock, tzinfo=practice_timezone()).astimezone(timezone.utc)


def shift_wall_clock(value: datetime, delta: timedelta) -> datetime:
    """Move by delta in local wall-clock terms (keeps time of day across DST)."""
    local_naive = to_local(value).replace(tzinfo=None)
    return to_utc(local_naive + delta)


def wall_clock_delta(old: datetime, new: datetime) -> timedelta:
    """Inverse of shift_wall_clock: local wall-clock difference new - old."""
    return to_local(new).replace(tzinfo=None) - to_local(old).replace(tzinfo=None)


def parse_hhmm(value: str) -> time:
    """Parse "HH:MM" into a time. Raises ValueError on malformed input."""
    match = HHMM_PATTERN.match(value)
    if not match:
        raise ValueError(f"Invalid time format: {value!r}, expected HH:MM")
    return time(int(match.group(1)), int(match.group(2)))


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")
