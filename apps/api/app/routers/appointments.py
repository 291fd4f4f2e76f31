"""Appointments router - API endpoints for appointment management.

Practitioner endpoints for:
- Single, recurring and instant bookings
- Single or series-wide edits and deletions
- Attendance status and payment
- Inspecting scheduled emails
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.db.enums import AppointmentStatus, EditMode, EmailStatus
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    BookingResponse,
    DeletionResponse,
    EmailScheduleEntryRead,
    InstantMeetingCreate,
)
from app.services import appointment_service, email_scheduler_service
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import (
    _appointment_to_read,
    _booking_to_response,
    _email_to_read,
    _queue_notifications,
    _raise_http,
)

router = APIRouter(dependencies=[Depends(get_current_admin)])


# =============================================================================
# Reads
# =============================================================================

@router.get("", response_model=list[AppointmentRead])
def list_appointments(
    date_start: datetime | None = Query(None),
    date_end: datetime | None = Query(None),
    confirmed: bool | None = Query(None),
    client_id: UUID | None = Query(None),
    status: AppointmentStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    """Appointments overlapping the given window, ordered by start."""
    appointments = appointment_service.list_appointments(
        db,
        date_start=date_start,
        date_end=date_end,
        confirmed=confirmed,
        client_id=client_id,
        status=status,
    )
    return [_appointment_to_read(a) for a in appointments]


@router.get("/series/{recurrent_id}", response_model=list[AppointmentRead])
def get_series(
    recurrent_id: UUID,
    db: Session = Depends(get_db),
):
    """All instances of a recurring series."""
    try:
        appointments = appointment_service.get_series(db, recurrent_id)
    except SchedulingError as e:
        _raise_http(e)
    return [_appointment_to_read(a) for a in appointments]


@router.get("/{appointment_id}", response_model=AppointmentRead)
def get_appointment(
    appointment_id: UUID,
    db: Session = Depends(get_db),
):
    try:
        appointment = appointment_service.require_appointment(db, appointment_id)
    except SchedulingError as e:
        _raise_http(e)
    return _appointment_to_read(appointment)


@router.get("/{appointment_id}/emails", response_model=list[EmailScheduleEntryRead])
def get_appointment_emails(
    appointment_id: UUID,
    status: EmailStatus | None = Query(None),
    db: Session = Depends(get_db),
):
    """Scheduled emails of an appointment, including cancelled ones."""
    try:
        appointment_service.require_appointment(db, appointment_id)
    except SchedulingError as e:
        _raise_http(e)
    entries = email_scheduler_service.get_appointment_emails(db, appointment_id, status=status)
    return [_email_to_read(e) for e in entries]


# =============================================================================
# Creation
# =============================================================================

@router.post(
    "",
    response_model=BookingResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_appointment(
    data: AppointmentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """
    Book a single appointment, or a recurring series when is_recurring is set.

    Series instances that conflict or fall outside working hours are
    skipped and listed in the response.
    """
    try:
        if data.is_recurring:
            result = appointment_service.create_recurring_series(
                db,
                client_id=data.client_id,
                start=data.start_time,
                end=data.end_time,
                recurring_type=data.recurring_type,
                until=data.recurring_until,
                occurrences=data.occurrences,
                appointment_format=data.format,
                rate=data.rate,
            )
        else:
            result = appointment_service.create_appointment(
                db,
                client_id=data.client_id,
                start=data.start_time,
                end=data.end_time,
                appointment_format=data.format,
                rate=data.rate,
            )
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    return _booking_to_response(result)


@router.post(
    "/instant",
    response_model=BookingResponse,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_instant_meeting(
    data: InstantMeetingCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Start an online session now, outside working hours if needed."""
    try:
        result = appointment_service.create_instant_meeting(
            db, client_id=data.client_id, duration_minutes=data.duration_minutes
        )
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    return _booking_to_response(result)


# =============================================================================
# Updates
# =============================================================================

@router.patch(
    "/{appointment_id}",
    response_model=BookingResponse,
    dependencies=[Depends(require_csrf_header)],
)
def update_appointment(
    appointment_id: UUID,
    data: AppointmentUpdate,
    db: Session = Depends(get_db),
):
    """
    Move and/or change the format of an appointment.

    With edit_mode=series the same wall-clock change is applied to every
    active instance; if any instance cannot move, nothing changes (409).
    """
    try:
        result = appointment_service.update_appointment(
            db,
            appointment_id,
            edit_mode=data.edit_mode,
            start=data.start_time,
            end=data.end_time,
            appointment_format=data.format,
        )
    except SchedulingError as e:
        _raise_http(e)
    return _booking_to_response(result)


@router.patch(
    "/{appointment_id}/status",
    response_model=AppointmentRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_status(
    appointment_id: UUID,
    data: AppointmentStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Attendance status and/or payment flag."""
    try:
        result = appointment_service.update_status(
            db, appointment_id, status=data.status, paid=data.paid
        )
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    return _appointment_to_read(result.appointments[0])


@router.delete(
    "/{appointment_id}",
    response_model=DeletionResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_appointment(
    appointment_id: UUID,
    edit_mode: EditMode = Query(EditMode.SINGLE),
    db: Session = Depends(get_db),
):
    """Delete one appointment or its whole series; pending emails are cancelled."""
    try:
        result = appointment_service.delete_appointment(db, appointment_id, edit_mode=edit_mode)
    except SchedulingError as e:
        _raise_http(e)
    return DeletionResponse(deleted_ids=result.deleted_ids, cancelled_emails=result.cancelled_emails)
