"""Availability service - weekly template, date overrides and resolution.

Handles:
- Weekly template blocks (per business weekday, split shifts allowed)
- Date overrides (explicit open blocks or a "closed" marker)
- Resolving the effective bookable blocks of a day
- Checking that an interval fits inside the resolved availability
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import BusinessWeekday
from app.db.models import DateAvailabilityOverride, WeeklyAvailabilityBlock
from app.services import conflict_service
from app.services.scheduling_errors import SchedulingValidationError
from app.utils.practice_time import combine_local, to_local, to_utc, utc_now

logger = logging.getLogger(__name__)


# =============================================================================
# Types
# =============================================================================

class TimeSlot(NamedTuple):
    """Bookable wall-clock block [start_time, end_time) on one day."""
    start_time: time
    end_time: time


class BlockInput(NamedTuple):
    """Weekly template block to persist."""
    weekday: BusinessWeekday
    start_time: time
    end_time: time
    is_active: bool = True


class ResolvedDay(NamedTuple):
    """Effective availability of one calendar day."""
    day: date
    slots: list[TimeSlot]
    source: str  # "template", "override" or "closed"


def _validate_block(start_time: time, end_time: time) -> None:
    if start_time >= end_time:
        raise SchedulingValidationError(
            f"Block start {start_time:%H:%M} must be before end {end_time:%H:%M}"
        )


# =============================================================================
# Weekly Template
# =============================================================================

def get_weekly_template(db: Session, include_inactive: bool = False) -> list[WeeklyAvailabilityBlock]:
    """All template blocks ordered by weekday then start time."""
    query = db.query(WeeklyAvailabilityBlock)
    if not include_inactive:
        query = query.filter(WeeklyAvailabilityBlock.is_active.is_(True))
    return query.order_by(
        WeeklyAvailabilityBlock.weekday,
        WeeklyAvailabilityBlock.start_time,
    ).all()


def get_weekly_block(db: Session, block_id: UUID) -> WeeklyAvailabilityBlock | None:
    return db.query(WeeklyAvailabilityBlock).filter(
        WeeklyAvailabilityBlock.id == block_id
    ).first()


def upsert_weekly_block(
    db: Session,
    weekday: BusinessWeekday,
    start_time: time,
    end_time: time,
    is_active: bool = True,
    block_id: UUID | None = None,
) -> WeeklyAvailabilityBlock | None:
    """
    Create a template block, or update block_id when given.

    Returns None when block_id does not exist.
    """
    _validate_block(start_time, end_time)

    if block_id is not None:
        block = get_weekly_block(db, block_id)
        if not block:
            return None
    else:
        block = WeeklyAvailabilityBlock()
        db.add(block)

    block.weekday = int(BusinessWeekday(weekday))
    block.start_time = start_time
    block.end_time = end_time
    block.is_active = is_active

    db.commit()
    db.refresh(block)
    return block


def delete_weekly_block(db: Session, block_id: UUID) -> bool:
    block = get_weekly_block(db, block_id)
    if not block:
        return False
    db.delete(block)
    db.commit()
    return True


def replace_weekly_template(db: Session, blocks: list[BlockInput]) -> list[WeeklyAvailabilityBlock]:
    """Replace the whole weekly template (delete + recreate)."""
    for block in blocks:
        _validate_block(block.start_time, block.end_time)

    db.query(WeeklyAvailabilityBlock).delete()

    new_blocks = []
    for block in blocks:
        row = WeeklyAvailabilityBlock(
            weekday=int(BusinessWeekday(block.weekday)),
            start_time=block.start_time,
            end_time=block.end_time,
            is_active=block.is_active,
        )
        db.add(row)
        new_blocks.append(row)

    db.commit()
    for row in new_blocks:
        db.refresh(row)
    logger.info("Weekly template replaced with %d blocks", len(new_blocks))
    return new_blocks


# =============================================================================
# Date Overrides
# =============================================================================

def get_overrides_for_date(db: Session, day: date) -> list[DateAvailabilityOverride]:
    return db.query(DateAvailabilityOverride).filter(
        DateAvailabilityOverride.override_date == day
    ).all()


def get_overrides_for_range(
    db: Session,
    date_start: date,
    date_end: date,
) -> list[DateAvailabilityOverride]:
    """Override rows with date_start <= date <= date_end."""
    return db.query(DateAvailabilityOverride).filter(
        DateAvailabilityOverride.override_date >= date_start,
        DateAvailabilityOverride.override_date <= date_end,
    ).order_by(
        DateAvailabilityOverride.override_date,
        DateAvailabilityOverride.start_time,
    ).all()


def upsert_override(
    db: Session,
    day: date,
    slots: list[TimeSlot] | None,
    reason: str | None = None,
    commit: bool = True,
) -> list[DateAvailabilityOverride]:
    """
    Replace the overrides of a date.

    An empty or missing slot list stores the "closed" marker, so the day has
    no availability regardless of the weekly template.
    """
    for slot in slots or []:
        _validate_block(slot.start_time, slot.end_time)

    db.query(DateAvailabilityOverride).filter(
        DateAvailabilityOverride.override_date == day
    ).delete()

    rows = []
    if slots:
        for slot in slots:
            rows.append(DateAvailabilityOverride(
                override_date=day,
                start_time=slot.start_time,
                end_time=slot.end_time,
                reason=reason,
            ))
    else:
        rows.append(DateAvailabilityOverride(override_date=day, reason=reason))
    db.add_all(rows)

    if commit:
        db.commit()
        for row in rows:
            db.refresh(row)
    return rows


def close_dates(
    db: Session,
    date_start: date,
    date_end: date,
    reason: str | None = None,
) -> int:
    """Mark every date in [date_start, date_end] closed (vacation). Returns day count."""
    if date_end < date_start:
        raise SchedulingValidationError("End date must not be before start date")

    count = 0
    current = date_start
    while current <= date_end:
        upsert_override(db, current, None, reason=reason, commit=False)
        current += timedelta(days=1)
        count += 1

    db.commit()
    logger.info("Closed %d dates from %s to %s", count, date_start, date_end)
    return count


def delete_overrides(db: Session, day: date) -> int:
    """Drop all overrides of a date so it falls back to the template."""
    deleted = db.query(DateAvailabilityOverride).filter(
        DateAvailabilityOverride.override_date == day
    ).delete()
    db.commit()
    return deleted


# =============================================================================
# Resolution
# =============================================================================

def _resolve_from_rows(
    day: date,
    overrides: list[DateAvailabilityOverride],
    template: list[WeeklyAvailabilityBlock],
) -> ResolvedDay:
    if overrides:
        # Closed marker wins over any other row of that date
        if any(row.is_closed for row in overrides):
            return ResolvedDay(day, [], "closed")
        slots = sorted(TimeSlot(row.start_time, row.end_time) for row in overrides)
        return ResolvedDay(day, slots, "override")

    weekday = BusinessWeekday.from_date(day)
    slots = sorted(
        TimeSlot(block.start_time, block.end_time)
        for block in template
        if block.weekday == weekday and block.is_active
    )
    return ResolvedDay(day, slots, "template")


def resolve_availability(db: Session, day: date | datetime) -> list[TimeSlot]:
    """
    Effective bookable blocks for a day, ordered by start time.

    Override rows replace the template wholesale; a closed marker yields [].
    Overlapping blocks are returned as-is (not merged).
    """
    if isinstance(day, datetime):
        day = to_local(day).date()
    return resolve_day(db, day).slots


def resolve_day(db: Session, day: date) -> ResolvedDay:
    overrides = get_overrides_for_date(db, day)
    template = [] if overrides else get_weekly_template(db)
    return _resolve_from_rows(day, overrides, template)


def resolve_availability_range(db: Session, date_start: date, date_end: date) -> list[ResolvedDay]:
    """Resolve every day in [date_start, date_end] with two queries."""
    if date_end < date_start:
        raise SchedulingValidationError("End date must not be before start date")

    by_date: dict[date, list[DateAvailabilityOverride]] = {}
    for row in get_overrides_for_range(db, date_start, date_end):
        by_date.setdefault(row.override_date, []).append(row)
    template = get_weekly_template(db)

    days = []
    current = date_start
    while current <= date_end:
        days.append(_resolve_from_rows(current, by_date.get(current, []), template))
        current += timedelta(days=1)
    return days


def check_within_availability(db: Session, start: datetime, end: datetime) -> bool:
    """
    True if [start, end) lies inside one resolved block of its local day.

    Intervals crossing local midnight are never bookable.
    """
    local_start = to_local(start)
    local_end = to_local(end)
    if local_start.date() != local_end.date():
        return False

    start_clock = local_start.time().replace(tzinfo=None)
    end_clock = local_end.time().replace(tzinfo=None)
    for slot in resolve_availability(db, local_start.date()):
        if slot.start_time <= start_clock and end_clock <= slot.end_time:
            return True
    return False


# =============================================================================
# Public Slots
# =============================================================================

class FreeSlot(NamedTuple):
    """Bookable UTC interval offered to clients."""
    start: datetime
    end: datetime


def list_free_slots(
    db: Session,
    day: date,
    duration_minutes: int,
    now: datetime | None = None,
) -> list[FreeSlot]:
    """
    Cut the resolved blocks of a day into fixed-length slots.

    Slots that overlap an appointment or start before now are left out.
    """
    if duration_minutes <= 0:
        raise SchedulingValidationError("Duration must be positive")

    now = to_utc(now) if now else utc_now()
    step = timedelta(minutes=duration_minutes)
    slots = []
    for block in resolve_availability(db, day):
        cursor = combine_local(day, block.start_time)
        block_end = combine_local(day, block.end_time)
        while cursor + step <= block_end:
            candidate = FreeSlot(cursor, cursor + step)
            if candidate.start > now and not conflict_service.has_conflict(db, candidate.start, candidate.end):
                slots.append(candidate)
            cursor += step
    return slots
