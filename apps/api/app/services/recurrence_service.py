"""Recurrence expansion for recurring appointment series.

Instances keep the seed's local time of day and duration. Steps are always
computed from the seed (seed + n * step), so a monthly series on the 31st
clamps to shorter months without drifting afterwards.
"""

import calendar
import logging
from datetime import date, datetime, timedelta
from typing import NamedTuple

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import RecurringType
from app.services import availability_service, conflict_service
from app.services.scheduling_errors import (
    ConflictError,
    SchedulingValidationError,
    UnavailableSlotError,
)
from app.utils.practice_time import to_local, to_utc

logger = logging.getLogger(__name__)


class SeriesCandidate(NamedTuple):
    """One generated instance of a series."""
    start: datetime
    end: datetime
    conflict: bool
    unavailable: bool = False

    @property
    def bookable(self) -> bool:
        return not (self.conflict or self.unavailable)


def add_months(day: date, months: int) -> date:
    """Same day-of-month `months` later, clamped to the month's last day."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def occurrence_date(seed: date, recurring_type: RecurringType, index: int) -> date:
    """Local date of the index-th instance (index 0 is the seed)."""
    if recurring_type == RecurringType.WEEKLY:
        return seed + timedelta(days=7 * index)
    if recurring_type == RecurringType.BIWEEKLY:
        return seed + timedelta(days=14 * index)
    if recurring_type == RecurringType.MONTHLY:
        return add_months(seed, index)
    raise SchedulingValidationError(f"Unsupported recurring type: {recurring_type}")


def generate_occurrences(
    start: datetime,
    end: datetime,
    recurring_type: RecurringType,
    until: date | None = None,
    occurrences: int | None = None,
) -> list[tuple[datetime, datetime]]:
    """
    UTC (start, end) pairs of the series, seed first.

    Stops at `until` (inclusive, local date of the instance start) or after
    `occurrences` instances, whichever comes first, and never past
    RECURRING_MAX_OCCURRENCES.
    """
    if until is None and occurrences is None:
        raise SchedulingValidationError("A recurring series needs an end date or an occurrence count")
    if occurrences is not None and occurrences < 1:
        raise SchedulingValidationError("Occurrence count must be at least 1")

    local_start = to_local(start).replace(tzinfo=None)
    duration = to_local(end).replace(tzinfo=None) - local_start
    seed_day = local_start.date()
    if until is not None and until < seed_day:
        raise SchedulingValidationError("Series end date is before the first session")

    limit = settings.RECURRING_MAX_OCCURRENCES
    if occurrences is not None:
        limit = min(limit, occurrences)

    result = []
    for index in range(limit):
        day = occurrence_date(seed_day, recurring_type, index)
        if until is not None and day > until:
            break
        instance_start = datetime.combine(day, local_start.time())
        result.append((to_utc(instance_start), to_utc(instance_start + duration)))
    return result


def expand_series(
    db: Session,
    start: datetime,
    end: datetime,
    recurring_type: RecurringType,
    until: date | None = None,
    occurrences: int | None = None,
    enforce_availability: bool = True,
) -> list[SeriesCandidate]:
    """
    Generate the series and flag instances that cannot be booked.

    Conflicting (or unavailable) instances are flagged, not dropped; the
    caller decides what to do with them. A seed that conflicts or falls
    outside availability is refused outright.
    """
    candidates = []
    for index, (instance_start, instance_end) in enumerate(
        generate_occurrences(start, end, recurring_type, until=until, occurrences=occurrences)
    ):
        overlapping = conflict_service.find_overlapping(db, instance_start, instance_end)
        unavailable = enforce_availability and not availability_service.check_within_availability(
            db, instance_start, instance_end
        )

        if index == 0:
            if overlapping:
                raise ConflictError(
                    "First session of the series overlaps an existing appointment",
                    conflicting_ids=[appt.id for appt in overlapping],
                )
            if unavailable:
                raise UnavailableSlotError("First session of the series is outside availability")

        candidates.append(SeriesCandidate(
            start=instance_start,
            end=instance_end,
            conflict=bool(overlapping),
            unavailable=unavailable,
        ))

    flagged = sum(1 for c in candidates if not c.bookable)
    if flagged:
        logger.info(
            "Series expansion flagged %d of %d %s instances",
            flagged, len(candidates), recurring_type.value,
        )
    return candidates
