"""Availability enums."""

from datetime import date
from enum import IntEnum


class BusinessWeekday(IntEnum):
    """Weekday index used by availability templates (Monday=0)."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_date(cls, day: date) -> "BusinessWeekday":
        """The one place a calendar date becomes a weekday index."""
        return cls(day.weekday())
