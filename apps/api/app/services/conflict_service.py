"""Conflict detection on the practitioner's single calendar."""

from collections.abc import Collection
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import AppointmentStatus
from app.db.models import Appointment
from app.utils.practice_time import to_utc


def find_overlapping(
    db: Session,
    start: datetime,
    end: datetime,
    exclude_appointment_id: UUID | None = None,
    exclude_ids: Collection[UUID] | None = None,
) -> list[Appointment]:
    """
    Non-cancelled appointments overlapping [start, end).

    Half-open: an appointment ending exactly at start does not overlap.
    Pending (unconfirmed) requests hold their slot too.
    """
    start = to_utc(start)
    end = to_utc(end)

    query = db.query(Appointment).filter(
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.scheduled_start < end,
        Appointment.scheduled_end > start,
    )
    excluded = set(exclude_ids or ())
    if exclude_appointment_id is not None:
        excluded.add(exclude_appointment_id)
    if excluded:
        query = query.filter(Appointment.id.notin_(excluded))

    return query.order_by(Appointment.scheduled_start).all()


def has_conflict(
    db: Session,
    start: datetime,
    end: datetime,
    exclude_appointment_id: UUID | None = None,
    exclude_ids: Collection[UUID] | None = None,
) -> bool:
    """True if [start, end) overlaps any other non-cancelled appointment."""
    return bool(find_overlapping(db, start, end, exclude_appointment_id, exclude_ids))
