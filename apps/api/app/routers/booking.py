"""Public booking router - API endpoints for public appointment booking.

Unauthenticated endpoints for clients to:
- View free time slots
- Submit booking requests (pending practitioner approval)
"""

from datetime import date, timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db
from app.core.rate_limit import BOOKING_LIMIT, limiter
from app.schemas.appointment import (
    BookingRequestCreate,
    BookingRequestResponse,
    PublicSlotRead,
)
from app.services import appointment_service, availability_service
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import _queue_notifications, _raise_http

router = APIRouter()

MAX_SLOT_RANGE_DAYS = 31


@router.get("/slots", response_model=list[PublicSlotRead])
def get_free_slots(
    date_start: date = Query(...),
    date_end: date | None = Query(None),
    db: Session = Depends(get_db),
):
    """Free slots of the standard session length for a day or a range (inclusive)."""
    date_end = date_end or date_start
    if date_end < date_start:
        raise HTTPException(status_code=400, detail="date_end must not be before date_start")
    if (date_end - date_start).days > MAX_SLOT_RANGE_DAYS:
        raise HTTPException(
            status_code=400,
            detail=f"Range cannot exceed {MAX_SLOT_RANGE_DAYS} days",
        )

    slots = []
    current = date_start
    while current <= date_end:
        for slot in availability_service.list_free_slots(
            db, current, settings.PUBLIC_BOOKING_DURATION_MINUTES
        ):
            slots.append(PublicSlotRead(start_time=slot.start, end_time=slot.end))
        current += timedelta(days=1)
    return slots


@router.post("/requests", response_model=BookingRequestResponse, status_code=201)
@limiter.limit(BOOKING_LIMIT)
def create_booking_request(
    data: BookingRequestCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Submit a booking request.

    Creates an unconfirmed appointment that holds the slot until the
    practitioner approves or rejects it. Rate limited to prevent spam.
    """
    try:
        result = appointment_service.request_booking(
            db,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            start=data.start_time,
            end=data.end_time,
            phone=data.phone,
            appointment_format=data.format,
        )
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    appointment = result.appointments[0]
    return BookingRequestResponse(
        appointment_id=appointment.id,
        start_time=appointment.scheduled_start,
        end_time=appointment.scheduled_end,
    )
