"""Approvals router - pending public booking requests and new clients."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.schemas.appointment import AppointmentRead, ApproveRequest, BookingResponse
from app.schemas.client import ClientRead
from app.services import appointment_service, client_service
from app.services.scheduling_errors import SchedulingError
from app.routers.clients import _client_to_read
from app.routers.scheduling_shared import (
    _appointment_to_read,
    _booking_to_response,
    _queue_notifications,
    _raise_http,
)

router = APIRouter(dependencies=[Depends(get_current_admin)])


# =============================================================================
# Appointment Requests
# =============================================================================

@router.get("/appointments", response_model=list[AppointmentRead])
def list_pending_appointments(db: Session = Depends(get_db)):
    """Booking requests awaiting approval, oldest slot first."""
    return [_appointment_to_read(a) for a in appointment_service.list_pending_appointments(db)]


@router.post(
    "/appointments/{appointment_id}/approve",
    response_model=BookingResponse,
    dependencies=[Depends(require_csrf_header)],
)
def approve_appointment(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    data: ApproveRequest | None = None,
    db: Session = Depends(get_db),
):
    """Confirm a request: invoice, meeting tokens and emails are set up."""
    try:
        result = appointment_service.approve_appointment(
            db, appointment_id, rate=data.rate if data else None
        )
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    return _booking_to_response(result)


@router.post(
    "/appointments/{appointment_id}/reject",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def reject_appointment(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
):
    """Delete a pending request and notify the requester."""
    try:
        result = appointment_service.reject_appointment(db, appointment_id)
    except SchedulingError as e:
        _raise_http(e)

    _queue_notifications(background_tasks, result.notifications)
    return None


# =============================================================================
# Client Intake
# =============================================================================

@router.get("/clients", response_model=list[ClientRead])
def list_pending_clients(db: Session = Depends(get_db)):
    clients, _ = client_service.list_clients(db, confirmed=False, per_page=1000)
    return [_client_to_read(c) for c in clients]


@router.post(
    "/clients/{client_id}/approve",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def approve_client(
    client_id: UUID,
    db: Session = Depends(get_db),
):
    try:
        client = client_service.approve_client(db, client_id)
    except SchedulingError as e:
        _raise_http(e)
    return _client_to_read(client)


@router.post(
    "/clients/{client_id}/reject",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def reject_client(
    client_id: UUID,
    db: Session = Depends(get_db),
):
    """Delete an unconfirmed client and its pending requests."""
    try:
        client_service.reject_client(db, client_id)
    except SchedulingError as e:
        _raise_http(e)
    return None
