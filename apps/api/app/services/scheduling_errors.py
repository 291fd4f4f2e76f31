"""Scheduling error hierarchy.

Raised by the availability, conflict, recurrence and appointment services;
routers translate them into HTTP responses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


class SchedulingError(Exception):
    """Base exception for scheduling operations."""


class SchedulingValidationError(SchedulingError):
    """Malformed interval, bad availability block or missing booking fields."""


class ConflictError(SchedulingError):
    """Candidate interval overlaps a non-cancelled appointment."""

    def __init__(self, message: str, conflicting_ids: list[UUID] | None = None):
        super().__init__(message)
        self.conflicting_ids = conflicting_ids or []


class UnavailableSlotError(SchedulingError):
    """Candidate interval is outside the resolved availability for its day."""


class AppointmentNotFoundError(SchedulingError):
    """Referenced appointment, series or client does not exist."""


class InvalidStatusTransitionError(SchedulingError):
    """Requested status change is not allowed (e.g. out of CANCELLED)."""


@dataclass(frozen=True)
class FailedInstance:
    """One series instance that could not be moved."""

    appointment_id: UUID | None
    start: datetime
    end: datetime
    reason: str  # "conflict" or "unavailable"


class PartialSeriesFailure(SchedulingError):
    """Series-wide edit rejected because some instances would be invalid."""

    def __init__(self, message: str, failures: list[FailedInstance]):
        super().__init__(message)
        self.failures = failures


class MeetingAccessError(SchedulingError):
    """Meeting token does not match, or check-in is outside the meeting window."""
