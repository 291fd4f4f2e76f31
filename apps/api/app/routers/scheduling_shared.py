"""Shared helpers for scheduling routers."""

from fastapi import BackgroundTasks, HTTPException

from app.db.models import Appointment, EmailScheduleEntry
from app.schemas.appointment import (
    AppointmentRead,
    BookingResponse,
    EmailScheduleEntryRead,
    FailedInstanceRead,
    SkippedInstanceRead,
)
from app.services import notification_service, video_service
from app.services.appointment_service import BookingResult
from app.services.notification_service import NotificationIntent
from app.services.scheduling_errors import (
    AppointmentNotFoundError,
    ConflictError,
    MeetingAccessError,
    PartialSeriesFailure,
    SchedulingError,
    UnavailableSlotError,
)


def _appointment_to_read(appointment: Appointment) -> AppointmentRead:
    """Convert Appointment model to read schema with client and invoice fields."""
    client = appointment.client
    invoice = appointment.invoice

    meeting_url = None
    if appointment.host_jwt:
        meeting_url = video_service.meeting_url(appointment.id, "host", appointment.host_jwt)

    return AppointmentRead(
        id=appointment.id,
        client_id=appointment.client_id,
        client_name=client.full_name,
        client_email=client.email,
        start_time=appointment.scheduled_start,
        end_time=appointment.scheduled_end,
        format=appointment.format,
        status=appointment.status,
        confirmed=appointment.confirmed,
        is_recurring=appointment.is_recurring,
        recurring_type=appointment.recurring_type,
        recurrent_id=appointment.recurrent_id,
        host_attended=appointment.host_attended,
        client_attended=appointment.client_attended,
        meeting_url=meeting_url,
        invoice_amount=invoice.amount if invoice else None,
        invoice_status=invoice.status if invoice else None,
        created_at=appointment.created_at,
        updated_at=appointment.updated_at,
    )


def _email_to_read(entry: EmailScheduleEntry) -> EmailScheduleEntryRead:
    return EmailScheduleEntryRead(
        id=entry.id,
        appointment_id=entry.appointment_id,
        email_type=entry.email_type,
        scheduled_for=entry.scheduled_for,
        recipient_email=entry.recipient_email,
        subject=entry.subject,
        status=entry.status,
        sent_at=entry.sent_at,
        error_message=entry.error_message,
    )


def _booking_to_response(result: BookingResult) -> BookingResponse:
    return BookingResponse(
        appointments=[_appointment_to_read(appt) for appt in result.appointments],
        skipped=[
            SkippedInstanceRead(start_time=s.start, end_time=s.end, reason=s.reason)
            for s in result.skipped
        ],
        recurrent_id=result.recurrent_id,
    )


def _queue_notifications(background_tasks: BackgroundTasks, intents: list[NotificationIntent]) -> None:
    """Send lifecycle emails after the response (the transaction has committed)."""
    if intents:
        background_tasks.add_task(notification_service.deliver_notifications, intents)


def _raise_http(exc: SchedulingError) -> None:
    """Map a scheduling error to its HTTP status."""
    if isinstance(exc, AppointmentNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, PartialSeriesFailure):
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "failures": [
                    FailedInstanceRead(
                        appointment_id=f.appointment_id,
                        start_time=f.start,
                        end_time=f.end,
                        reason=f.reason,
                    ).model_dump(mode="json")
                    for f in exc.failures
                ],
            },
        ) from exc
    if isinstance(exc, ConflictError):
        raise HTTPException(
            status_code=409,
            detail={
                "message": str(exc),
                "conflicting_ids": [str(i) for i in exc.conflicting_ids],
            },
        ) from exc
    if isinstance(exc, UnavailableSlotError):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if isinstance(exc, MeetingAccessError):
        raise HTTPException(status_code=403, detail=str(exc)) from exc
    # SchedulingValidationError, InvalidStatusTransitionError
    raise HTTPException(status_code=400, detail=str(exc)) from exc
