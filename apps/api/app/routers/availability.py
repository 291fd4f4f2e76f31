"""Availability router - weekly template, date overrides and resolution.

Practitioner-only endpoints for:
- The recurring weekly template (split shifts allowed)
- Per-date overrides and vacation closures
- Resolved availability and slot checks
"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.db.enums import BusinessWeekday
from app.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    DateOverrideRead,
    DateOverrideSet,
    DateRangeClose,
    DateRangeCloseResponse,
    ResolvedDayRead,
    TimeSlotSchema,
    WeeklyBlockInput,
    WeeklyBlockRead,
    WeeklyTemplateSet,
)
from app.services import availability_service, conflict_service
from app.services.appointment_service import validate_interval
from app.services.availability_service import BlockInput, TimeSlot
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import _raise_http
from app.utils.practice_time import format_hhmm, parse_hhmm

router = APIRouter(dependencies=[Depends(get_current_admin)])

MAX_RANGE_DAYS = 92


# =============================================================================
# Helper Functions
# =============================================================================

def _block_to_read(block) -> WeeklyBlockRead:
    return WeeklyBlockRead(
        id=block.id,
        weekday=block.weekday,
        weekday_name=BusinessWeekday(block.weekday).name.capitalize(),
        start_time=format_hhmm(block.start_time),
        end_time=format_hhmm(block.end_time),
        is_active=block.is_active,
    )


def _override_to_read(override) -> DateOverrideRead:
    return DateOverrideRead(
        id=override.id,
        date=override.override_date,
        start_time=format_hhmm(override.start_time) if override.start_time else None,
        end_time=format_hhmm(override.end_time) if override.end_time else None,
        is_closed=override.is_closed,
        reason=override.reason,
    )


def _slot_to_schema(slot: TimeSlot) -> TimeSlotSchema:
    return TimeSlotSchema(
        start_time=format_hhmm(slot.start_time),
        end_time=format_hhmm(slot.end_time),
    )


def _block_input(data: WeeklyBlockInput) -> BlockInput:
    return BlockInput(
        weekday=BusinessWeekday(data.weekday),
        start_time=parse_hhmm(data.start_time),
        end_time=parse_hhmm(data.end_time),
        is_active=data.is_active,
    )


def _check_range(date_start: date, date_end: date) -> None:
    if date_end < date_start:
        raise HTTPException(status_code=400, detail="date_end must not be before date_start")
    if (date_end - date_start).days > MAX_RANGE_DAYS:
        raise HTTPException(status_code=400, detail=f"Range cannot exceed {MAX_RANGE_DAYS} days")


# =============================================================================
# Weekly Template
# =============================================================================

@router.get("/weekly", response_model=list[WeeklyBlockRead])
def get_weekly_template(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
):
    """Weekly template blocks ordered by weekday and start time."""
    blocks = availability_service.get_weekly_template(db, include_inactive=include_inactive)
    return [_block_to_read(b) for b in blocks]


@router.put(
    "/weekly",
    response_model=list[WeeklyBlockRead],
    dependencies=[Depends(require_csrf_header)],
)
def replace_weekly_template(
    data: WeeklyTemplateSet,
    db: Session = Depends(get_db),
):
    """Replace the whole weekly template."""
    try:
        blocks = availability_service.replace_weekly_template(
            db, [_block_input(b) for b in data.blocks]
        )
    except SchedulingError as e:
        _raise_http(e)
    return [_block_to_read(b) for b in blocks]


@router.post(
    "/weekly",
    response_model=WeeklyBlockRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_weekly_block(
    data: WeeklyBlockInput,
    db: Session = Depends(get_db),
):
    """Add one block to the weekly template."""
    block = _block_input(data)
    try:
        row = availability_service.upsert_weekly_block(
            db, block.weekday, block.start_time, block.end_time, is_active=block.is_active
        )
    except SchedulingError as e:
        _raise_http(e)
    return _block_to_read(row)


@router.put(
    "/weekly/{block_id}",
    response_model=WeeklyBlockRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_weekly_block(
    block_id: UUID,
    data: WeeklyBlockInput,
    db: Session = Depends(get_db),
):
    block = _block_input(data)
    try:
        row = availability_service.upsert_weekly_block(
            db,
            block.weekday,
            block.start_time,
            block.end_time,
            is_active=block.is_active,
            block_id=block_id,
        )
    except SchedulingError as e:
        _raise_http(e)
    if not row:
        raise HTTPException(status_code=404, detail="Availability block not found")
    return _block_to_read(row)


@router.delete(
    "/weekly/{block_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_weekly_block(
    block_id: UUID,
    db: Session = Depends(get_db),
):
    if not availability_service.delete_weekly_block(db, block_id):
        raise HTTPException(status_code=404, detail="Availability block not found")
    return None


# =============================================================================
# Date Overrides
# =============================================================================

@router.get("/overrides", response_model=list[DateOverrideRead])
def list_overrides(
    date_start: date = Query(...),
    date_end: date = Query(...),
    db: Session = Depends(get_db),
):
    """Override rows between two dates (inclusive)."""
    _check_range(date_start, date_end)
    overrides = availability_service.get_overrides_for_range(db, date_start, date_end)
    return [_override_to_read(o) for o in overrides]


@router.put(
    "/overrides/{day}",
    response_model=list[DateOverrideRead],
    dependencies=[Depends(require_csrf_header)],
)
def set_override(
    day: date,
    data: DateOverrideSet,
    db: Session = Depends(get_db),
):
    """
    Replace the availability of one date.

    An empty slot list closes the day.
    """
    slots = [
        TimeSlot(parse_hhmm(s.start_time), parse_hhmm(s.end_time))
        for s in data.slots
    ]
    try:
        rows = availability_service.upsert_override(db, day, slots, reason=data.reason)
    except SchedulingError as e:
        _raise_http(e)
    return [_override_to_read(r) for r in rows]


@router.delete(
    "/overrides/{day}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_override(
    day: date,
    db: Session = Depends(get_db),
):
    """Drop the overrides of a date so the weekly template applies again."""
    if not availability_service.delete_overrides(db, day):
        raise HTTPException(status_code=404, detail="No override for this date")
    return None


@router.post(
    "/close-dates",
    response_model=DateRangeCloseResponse,
    dependencies=[Depends(require_csrf_header)],
)
def close_dates(
    data: DateRangeClose,
    db: Session = Depends(get_db),
):
    """Close every date in a range (vacation)."""
    try:
        count = availability_service.close_dates(
            db, data.date_start, data.date_end, reason=data.reason
        )
    except SchedulingError as e:
        _raise_http(e)
    return DateRangeCloseResponse(closed_days=count)


# =============================================================================
# Resolution
# =============================================================================

@router.get("/resolved", response_model=list[ResolvedDayRead])
def get_resolved_availability(
    date_start: date = Query(...),
    date_end: date | None = Query(None),
    db: Session = Depends(get_db),
):
    """Effective availability per day after applying overrides (one day if no date_end)."""
    date_end = date_end or date_start
    _check_range(date_start, date_end)
    days = availability_service.resolve_availability_range(db, date_start, date_end)
    return [
        ResolvedDayRead(
            date=d.day,
            source=d.source,
            slots=[_slot_to_schema(s) for s in d.slots],
        )
        for d in days
    ]


@router.post("/check", response_model=AvailabilityCheckResponse)
def check_slot(
    data: AvailabilityCheckRequest,
    db: Session = Depends(get_db),
):
    """Whether an interval is inside working hours and free of conflicts."""
    try:
        start, end = validate_interval(data.start_time, data.end_time)
    except SchedulingError as e:
        _raise_http(e)

    within = availability_service.check_within_availability(db, start, end)
    conflict = conflict_service.has_conflict(
        db, start, end, exclude_appointment_id=data.exclude_appointment_id
    )
    return AvailabilityCheckResponse(
        within_availability=within,
        has_conflict=conflict,
        bookable=within and not conflict,
    )
