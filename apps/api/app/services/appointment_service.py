"""Appointment service - lifecycle of appointments on the single calendar.

Handles:
- Single, recurring and instant bookings
- Public booking requests with approval/rejection
- Single and series-wide updates and deletions
- Status and payment transitions
- Meeting check-in of host and client

Every mutating operation runs under one process-wide lock, re-checks
conflicts right before commit and rolls back completely on error, so an
appointment is never committed without its email schedule.
"""

import hmac
import logging
import threading
import uuid
from collections.abc import Callable
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import NamedTuple
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.enums import (
    ALLOWED_STATUS_TRANSITIONS,
    AppointmentFormat,
    AppointmentStatus,
    EditMode,
    MeetingRole,
    NotificationKind,
    RecurringType,
)
from app.db.models import Appointment, Client
from app.services import (
    availability_service,
    client_service,
    conflict_service,
    email_scheduler_service,
    invoice_service,
    recurrence_service,
    video_service,
)
from app.services.notification_service import (
    NotificationIntent,
    appointment_intent,
    series_intent,
)
from app.services.scheduling_errors import (
    AppointmentNotFoundError,
    ConflictError,
    FailedInstance,
    InvalidStatusTransitionError,
    MeetingAccessError,
    PartialSeriesFailure,
    SchedulingValidationError,
    UnavailableSlotError,
)
from app.services.video_service import VideoTokens
from app.utils.practice_time import shift_wall_clock, to_utc, utc_now, wall_clock_delta

logger = logging.getLogger(__name__)

TokenIssuer = Callable[[UUID, str, str, datetime, datetime], VideoTokens | None]

# One practitioner, one calendar: writers are serialized.
_calendar_lock = threading.Lock()


# =============================================================================
# Types
# =============================================================================

class SkippedInstance(NamedTuple):
    """Series instance that was not booked."""
    start: datetime
    end: datetime
    reason: str  # "conflict" or "unavailable"


@dataclass
class BookingResult:
    """Appointments touched by an operation plus what the caller should send."""
    appointments: list[Appointment]
    skipped: list[SkippedInstance] = field(default_factory=list)
    notifications: list[NotificationIntent] = field(default_factory=list)

    @property
    def recurrent_id(self) -> UUID | None:
        return self.appointments[0].recurrent_id if self.appointments else None


@dataclass
class DeletionResult:
    deleted_ids: list[UUID]
    cancelled_emails: int


# =============================================================================
# Helpers
# =============================================================================

@contextmanager
def _calendar_write(db: Session):
    """Serialize calendar writers; commit on success, roll back on any error."""
    with _calendar_lock:
        try:
            yield
            db.commit()
        except Exception:
            db.rollback()
            raise


def validate_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    """UTC (start, end); rejects zero-length and inverted intervals."""
    if start is None or end is None:
        raise SchedulingValidationError("Start and end time are required")
    start = to_utc(start)
    end = to_utc(end)
    if end <= start:
        raise SchedulingValidationError("End time must be after start time")
    return start, end


def ensure_bookable(
    db: Session,
    start: datetime,
    end: datetime,
    exclude_ids: list[UUID] | None = None,
    enforce_availability: bool = True,
) -> None:
    """Availability first, then conflicts, so callers can tell the two apart."""
    if enforce_availability and not availability_service.check_within_availability(db, start, end):
        raise UnavailableSlotError("Requested time is outside working hours")

    overlapping = conflict_service.find_overlapping(db, start, end, exclude_ids=exclude_ids)
    if overlapping:
        raise ConflictError(
            "Requested time overlaps an existing appointment",
            conflicting_ids=[appt.id for appt in overlapping],
        )


def _recheck_before_commit(db: Session, appointments: list[Appointment]) -> None:
    """Final overlap check on the rows about to be committed."""
    db.flush()
    own_ids = [appt.id for appt in appointments]
    for appt in appointments:
        if appt.status == AppointmentStatus.CANCELLED:
            continue
        overlapping = conflict_service.find_overlapping(
            db, appt.scheduled_start, appt.scheduled_end, exclude_ids=own_ids
        )
        if overlapping:
            raise ConflictError(
                "Calendar changed while booking, slot is no longer free",
                conflicting_ids=[other.id for other in overlapping],
            )


def _assign_video_tokens(
    appointment: Appointment,
    client: Client,
    token_issuer: TokenIssuer | None,
) -> None:
    if appointment.format != AppointmentFormat.ONLINE:
        appointment.host_jwt = None
        appointment.client_jwt = None
        return

    issuer = token_issuer or video_service.issue_appointment_tokens
    tokens = issuer(
        appointment.id,
        client.full_name,
        client.email,
        appointment.scheduled_start,
        appointment.scheduled_end,
    )
    if tokens:
        appointment.host_jwt = tokens.host_jwt
        appointment.client_jwt = tokens.client_jwt


def _new_appointment(
    db: Session,
    client: Client,
    start: datetime,
    end: datetime,
    appointment_format: AppointmentFormat,
    confirmed: bool,
    recurring_type: RecurringType | None = None,
    recurrent_id: UUID | None = None,
) -> Appointment:
    appointment = Appointment(
        id=uuid.uuid4(),
        client_id=client.id,
        client=client,
        scheduled_start=start,
        scheduled_end=end,
        format=appointment_format,
        status=AppointmentStatus.NOT_YET_ATTENDED,
        confirmed=confirmed,
        is_recurring=recurrent_id is not None,
        recurring_type=recurring_type,
        recurrent_id=recurrent_id,
    )
    db.add(appointment)
    db.flush()
    return appointment


# =============================================================================
# Reads
# =============================================================================

def get_appointment(db: Session, appointment_id: UUID) -> Appointment | None:
    return db.query(Appointment).filter(Appointment.id == appointment_id).first()


def require_appointment(db: Session, appointment_id: UUID) -> Appointment:
    appointment = get_appointment(db, appointment_id)
    if not appointment:
        raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
    return appointment


def get_series(db: Session, recurrent_id: UUID) -> list[Appointment]:
    """All instances of a series ordered by start. Raises if none exist."""
    appointments = db.query(Appointment).filter(
        Appointment.recurrent_id == recurrent_id
    ).order_by(Appointment.scheduled_start).all()
    if not appointments:
        raise AppointmentNotFoundError(f"Series {recurrent_id} not found")
    return appointments


def list_appointments(
    db: Session,
    date_start: datetime | None = None,
    date_end: datetime | None = None,
    confirmed: bool | None = None,
    client_id: UUID | None = None,
    status: AppointmentStatus | None = None,
) -> list[Appointment]:
    """Appointments overlapping [date_start, date_end), ordered by start."""
    query = db.query(Appointment)
    if date_start is not None:
        query = query.filter(Appointment.scheduled_end > to_utc(date_start))
    if date_end is not None:
        query = query.filter(Appointment.scheduled_start < to_utc(date_end))
    if confirmed is not None:
        query = query.filter(Appointment.confirmed.is_(confirmed))
    if client_id is not None:
        query = query.filter(Appointment.client_id == client_id)
    if status is not None:
        query = query.filter(Appointment.status == status)
    return query.order_by(Appointment.scheduled_start).all()


def list_pending_appointments(db: Session) -> list[Appointment]:
    """Booking requests awaiting approval."""
    return list_appointments(db, confirmed=False, status=AppointmentStatus.NOT_YET_ATTENDED)


# =============================================================================
# Creation
# =============================================================================

def create_appointment(
    db: Session,
    client_id: UUID,
    start: datetime,
    end: datetime,
    appointment_format: AppointmentFormat = AppointmentFormat.FACE_TO_FACE,
    rate: Decimal | None = None,
    include_reminders: bool = True,
    enforce_availability: bool = True,
    now: datetime | None = None,
    token_issuer: TokenIssuer | None = None,
) -> BookingResult:
    """Book one confirmed appointment and schedule its emails."""
    start, end = validate_interval(start, end)

    with _calendar_write(db):
        client = client_service.require_bookable_client(db, client_id)
        ensure_bookable(db, start, end, enforce_availability=enforce_availability)

        appointment = _new_appointment(db, client, start, end, appointment_format, confirmed=True)
        invoice_service.create_invoice_for_appointment(db, appointment, client, rate)
        _assign_video_tokens(appointment, client, token_issuer)
        email_scheduler_service.schedule_appointment_emails(
            db, appointment, include_reminders=include_reminders, now=now
        )
        _recheck_before_commit(db, [appointment])

    logger.info("Appointment %s created for client %s", appointment.id, client.id)
    return BookingResult(
        appointments=[appointment],
        notifications=[
            appointment_intent(NotificationKind.APPOINTMENT_CONFIRMATION, appointment, client)
        ],
    )


def create_recurring_series(
    db: Session,
    client_id: UUID,
    start: datetime,
    end: datetime,
    recurring_type: RecurringType,
    until: date | None = None,
    occurrences: int | None = None,
    appointment_format: AppointmentFormat = AppointmentFormat.FACE_TO_FACE,
    rate: Decimal | None = None,
    now: datetime | None = None,
    token_issuer: TokenIssuer | None = None,
) -> BookingResult:
    """
    Book a recurring series under one new recurrent_id.

    Instances that conflict or fall outside availability are skipped and
    reported; the first instance must be bookable.
    """
    start, end = validate_interval(start, end)
    recurring_type = RecurringType(recurring_type)

    with _calendar_write(db):
        client = client_service.require_bookable_client(db, client_id)
        candidates = recurrence_service.expand_series(
            db, start, end, recurring_type, until=until, occurrences=occurrences
        )

        recurrent_id = uuid.uuid4()
        appointments: list[Appointment] = []
        skipped: list[SkippedInstance] = []
        for candidate in candidates:
            if not candidate.bookable:
                reason = "conflict" if candidate.conflict else "unavailable"
                skipped.append(SkippedInstance(candidate.start, candidate.end, reason))
                continue

            appointment = _new_appointment(
                db,
                client,
                candidate.start,
                candidate.end,
                appointment_format,
                confirmed=True,
                recurring_type=recurring_type,
                recurrent_id=recurrent_id,
            )
            invoice_service.create_invoice_for_appointment(db, appointment, client, rate)
            _assign_video_tokens(appointment, client, token_issuer)
            email_scheduler_service.schedule_appointment_emails(
                db, appointment, include_reminders=True, now=now
            )
            appointments.append(appointment)

        _recheck_before_commit(db, appointments)

    logger.info(
        "Series %s created: %d appointments, %d skipped",
        recurrent_id, len(appointments), len(skipped),
    )
    return BookingResult(
        appointments=appointments,
        skipped=skipped,
        notifications=[series_intent(appointments, client)],
    )


def create_instant_meeting(
    db: Session,
    client_id: UUID,
    duration_minutes: int = 60,
    now: datetime | None = None,
    token_issuer: TokenIssuer | None = None,
) -> BookingResult:
    """Online session starting now. Ignores working hours, never double-books."""
    if duration_minutes <= 0:
        raise SchedulingValidationError("Duration must be positive")
    start = (to_utc(now) if now else utc_now()).replace(second=0, microsecond=0)
    end = start + timedelta(minutes=duration_minutes)
    return create_appointment(
        db,
        client_id,
        start,
        end,
        appointment_format=AppointmentFormat.ONLINE,
        include_reminders=False,
        enforce_availability=False,
        now=now,
        token_issuer=token_issuer,
    )


def request_booking(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    start: datetime,
    end: datetime,
    phone: str | None = None,
    appointment_format: AppointmentFormat = AppointmentFormat.FACE_TO_FACE,
    now: datetime | None = None,
) -> BookingResult:
    """
    Public booking request: an unconfirmed appointment awaiting approval.

    Unknown emails create an unconfirmed client. No emails are scheduled
    until the request is approved.
    """
    start, end = validate_interval(start, end)
    if start <= (to_utc(now) if now else utc_now()):
        raise SchedulingValidationError("Cannot book a time in the past")

    with _calendar_write(db):
        client = client_service.get_client_by_email(db, email)
        if client is None:
            client = client_service.create_client(
                db,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone,
                confirmed=False,
                commit=False,
            )
        elif client.is_archived:
            # Returning client
            client.is_archived = False
            client.archived_at = None
        ensure_bookable(db, start, end)

        appointment = _new_appointment(db, client, start, end, appointment_format, confirmed=False)
        _recheck_before_commit(db, [appointment])

    logger.info("Booking request %s received from client %s", appointment.id, client.id)
    return BookingResult(
        appointments=[appointment],
        notifications=[
            appointment_intent(NotificationKind.BOOKING_REQUEST_RECEIVED, appointment, client)
        ],
    )


# =============================================================================
# Approval
# =============================================================================

def approve_appointment(
    db: Session,
    appointment_id: UUID,
    rate: Decimal | None = None,
    now: datetime | None = None,
    token_issuer: TokenIssuer | None = None,
) -> BookingResult:
    """Confirm a pending request. Approving twice is a no-op."""
    with _calendar_write(db):
        appointment = require_appointment(db, appointment_id)
        if appointment.status == AppointmentStatus.CANCELLED:
            raise InvalidStatusTransitionError("Cancelled appointments cannot be approved")
        if appointment.confirmed:
            return BookingResult(appointments=[appointment])

        client = appointment.client
        overlapping = conflict_service.find_overlapping(
            db,
            appointment.scheduled_start,
            appointment.scheduled_end,
            exclude_appointment_id=appointment.id,
        )
        if overlapping:
            raise ConflictError(
                "Requested time now overlaps another appointment",
                conflicting_ids=[appt.id for appt in overlapping],
            )

        appointment.confirmed = True
        client.confirmed = True
        if invoice_service.get_invoice_for_appointment(db, appointment.id) is None:
            invoice_service.create_invoice_for_appointment(db, appointment, client, rate)
        if not appointment.host_jwt:
            _assign_video_tokens(appointment, client, token_issuer)
        email_scheduler_service.schedule_appointment_emails(db, appointment, now=now)
        _recheck_before_commit(db, [appointment])

    logger.info("Appointment %s approved", appointment.id)
    return BookingResult(
        appointments=[appointment],
        notifications=[
            appointment_intent(NotificationKind.APPOINTMENT_CONFIRMATION, appointment, client)
        ],
    )


def reject_appointment(db: Session, appointment_id: UUID) -> BookingResult:
    """Delete a pending request and tell the requester."""
    with _calendar_write(db):
        appointment = require_appointment(db, appointment_id)
        if appointment.confirmed:
            raise SchedulingValidationError("Only pending requests can be rejected")

        client = appointment.client
        intent = appointment_intent(NotificationKind.APPOINTMENT_CANCELLATION, appointment, client)
        email_scheduler_service.cancel_appointment_emails(db, appointment.id)
        db.delete(appointment)

    logger.info("Booking request %s rejected", appointment_id)
    return BookingResult(appointments=[], notifications=[intent])


def reject_client_requests(db: Session, client: Client) -> DeletionResult:
    """
    Drop an unconfirmed client with all of its pending requests.

    Refuses when any of the client's appointments was already confirmed.
    """
    client_id = client.id
    with _calendar_write(db):
        if client.confirmed:
            raise SchedulingValidationError("Confirmed clients cannot be rejected")

        appointments = db.query(Appointment).filter(Appointment.client_id == client.id).all()
        if any(appt.confirmed for appt in appointments):
            raise SchedulingValidationError("Client has confirmed appointments")

        ids = [appt.id for appt in appointments]
        cancelled = email_scheduler_service.cancel_series_appointment_emails(db, ids)
        for appt in appointments:
            db.delete(appt)
        db.delete(client)

    logger.info("Client %s rejected with %d pending requests", client_id, len(ids))
    return DeletionResult(deleted_ids=ids, cancelled_emails=cancelled)


# =============================================================================
# Updates
# =============================================================================

def update_appointment(
    db: Session,
    appointment_id: UUID,
    edit_mode: EditMode = EditMode.SINGLE,
    start: datetime | None = None,
    end: datetime | None = None,
    appointment_format: AppointmentFormat | None = None,
    enforce_availability: bool = True,
    now: datetime | None = None,
    token_issuer: TokenIssuer | None = None,
) -> BookingResult:
    """
    Move and/or change the format of one appointment or its whole series.

    SERIES mode applies the anchor's wall-clock change (days and time of
    day) to every non-cancelled instance and is all-or-nothing.
    """
    with _calendar_write(db):
        anchor = require_appointment(db, appointment_id)
        if anchor.status == AppointmentStatus.CANCELLED:
            raise InvalidStatusTransitionError("Cancelled appointments cannot be edited")

        new_start, new_end = validate_interval(
            start or anchor.scheduled_start,
            end or anchor.scheduled_end,
        )

        if EditMode(edit_mode) == EditMode.SERIES and anchor.recurrent_id is not None:
            changed = _update_series(
                db,
                anchor,
                start_delta=wall_clock_delta(anchor.scheduled_start, new_start),
                end_delta=wall_clock_delta(anchor.scheduled_end, new_end),
                appointment_format=appointment_format,
                enforce_availability=enforce_availability,
                now=now,
                token_issuer=token_issuer,
            )
        else:
            changed = [_update_single(
                db,
                anchor,
                new_start,
                new_end,
                appointment_format=appointment_format,
                enforce_availability=enforce_availability,
                now=now,
                token_issuer=token_issuer,
            )]

        _recheck_before_commit(db, changed)

    logger.info("Updated %d appointments (mode=%s)", len(changed), EditMode(edit_mode).value)
    return BookingResult(appointments=changed)


def _apply_changes(
    db: Session,
    appointment: Appointment,
    new_start: datetime,
    new_end: datetime,
    appointment_format: AppointmentFormat | None,
    now: datetime | None,
    token_issuer: TokenIssuer | None,
) -> None:
    times_changed = (
        new_start != appointment.scheduled_start or new_end != appointment.scheduled_end
    )
    format_changed = (
        appointment_format is not None and AppointmentFormat(appointment_format) != appointment.format
    )

    appointment.scheduled_start = new_start
    appointment.scheduled_end = new_end
    if format_changed:
        appointment.format = AppointmentFormat(appointment_format)

    if times_changed or format_changed:
        # Token validity window follows the session times
        _assign_video_tokens(appointment, appointment.client, token_issuer)
    if times_changed and appointment.confirmed:
        db.flush()
        email_scheduler_service.reschedule_appointment_emails(db, appointment, now=now)


def _update_single(
    db: Session,
    appointment: Appointment,
    new_start: datetime,
    new_end: datetime,
    appointment_format: AppointmentFormat | None,
    enforce_availability: bool,
    now: datetime | None,
    token_issuer: TokenIssuer | None,
) -> Appointment:
    if new_start != appointment.scheduled_start or new_end != appointment.scheduled_end:
        ensure_bookable(
            db,
            new_start,
            new_end,
            exclude_ids=[appointment.id],
            enforce_availability=enforce_availability,
        )
    _apply_changes(db, appointment, new_start, new_end, appointment_format, now, token_issuer)
    return appointment


def _update_series(
    db: Session,
    anchor: Appointment,
    start_delta: timedelta,
    end_delta: timedelta,
    appointment_format: AppointmentFormat | None,
    enforce_availability: bool,
    now: datetime | None,
    token_issuer: TokenIssuer | None,
) -> list[Appointment]:
    series = [
        appt for appt in get_series(db, anchor.recurrent_id)
        if appt.status != AppointmentStatus.CANCELLED
    ]
    series_ids = [appt.id for appt in series]

    planned: list[tuple[Appointment, datetime, datetime]] = []
    failures: list[FailedInstance] = []
    for appt in series:
        new_start = shift_wall_clock(appt.scheduled_start, start_delta)
        new_end = shift_wall_clock(appt.scheduled_end, end_delta)
        if new_end <= new_start:
            raise SchedulingValidationError("End time must be after start time")

        if start_delta or end_delta:
            try:
                ensure_bookable(
                    db,
                    new_start,
                    new_end,
                    exclude_ids=series_ids,
                    enforce_availability=enforce_availability,
                )
            except ConflictError:
                failures.append(FailedInstance(appt.id, new_start, new_end, "conflict"))
            except UnavailableSlotError:
                failures.append(FailedInstance(appt.id, new_start, new_end, "unavailable"))
        planned.append((appt, new_start, new_end))

    if failures:
        raise PartialSeriesFailure(
            f"{len(failures)} of {len(series)} sessions cannot be moved, series left unchanged",
            failures,
        )

    for appt, new_start, new_end in planned:
        _apply_changes(db, appt, new_start, new_end, appointment_format, now, token_issuer)
    return [appt for appt, _, _ in planned]


# =============================================================================
# Deletion
# =============================================================================

def delete_appointment(
    db: Session,
    appointment_id: UUID,
    edit_mode: EditMode = EditMode.SINGLE,
) -> DeletionResult:
    """Delete one appointment or its whole series; pending emails are cancelled first."""
    with _calendar_write(db):
        appointment = require_appointment(db, appointment_id)
        if EditMode(edit_mode) == EditMode.SERIES and appointment.recurrent_id is not None:
            targets = get_series(db, appointment.recurrent_id)
        else:
            targets = [appointment]

        ids = [appt.id for appt in targets]
        cancelled = email_scheduler_service.cancel_series_appointment_emails(db, ids)
        for appt in targets:
            db.delete(appt)

    logger.info("Deleted %d appointments, cancelled %d emails", len(ids), cancelled)
    return DeletionResult(deleted_ids=ids, cancelled_emails=cancelled)


# =============================================================================
# Status and Payment
# =============================================================================

def update_status(
    db: Session,
    appointment_id: UUID,
    status: AppointmentStatus | None = None,
    paid: bool | None = None,
    now: datetime | None = None,
) -> BookingResult:
    """
    Attendance status and/or invoice payment.

    Cancelling cancels pending emails and frees the slot. Nothing leaves
    CANCELLED.
    """
    notifications: list[NotificationIntent] = []

    with _calendar_write(db):
        appointment = require_appointment(db, appointment_id)

        if status is not None:
            status = AppointmentStatus(status)
            current = AppointmentStatus(appointment.status)
            if status != current:
                if status not in ALLOWED_STATUS_TRANSITIONS[current]:
                    raise InvalidStatusTransitionError(
                        f"Cannot change status from {current.value} to {status.value}"
                    )
                appointment.status = status
                if status == AppointmentStatus.CANCELLED:
                    email_scheduler_service.cancel_appointment_emails(db, appointment.id)
                    if appointment.confirmed:
                        notifications.append(appointment_intent(
                            NotificationKind.APPOINTMENT_CANCELLATION,
                            appointment,
                            appointment.client,
                        ))
                logger.info(
                    "Appointment %s status %s -> %s", appointment.id, current.value, status.value
                )

        if paid is not None:
            invoice = invoice_service.get_invoice_for_appointment(db, appointment.id)
            if invoice is None:
                invoice = invoice_service.create_invoice_for_appointment(
                    db, appointment, appointment.client
                )
            invoice_service.set_invoice_paid(db, invoice, paid, now=now)

    return BookingResult(appointments=[appointment], notifications=notifications)


# =============================================================================
# Meeting Check-in
# =============================================================================

CHECK_IN_OPENS_BEFORE_START = timedelta(minutes=30)


@dataclass
class AttendanceResult:
    appointment: Appointment
    already_recorded: bool = False


def record_attendance(
    db: Session,
    appointment_id: UUID,
    role: MeetingRole,
    token: str,
    now: datetime | None = None,
) -> AttendanceResult:
    """
    Mark the host or the client as present in the video session.

    The token must be the one stored for that participant. Check-in opens
    30 minutes before start and closes at the end. Once both parties are
    in, the appointment becomes ATTENDED.
    """
    role = MeetingRole(role)
    now = to_utc(now) if now else utc_now()

    with _calendar_write(db):
        appointment = require_appointment(db, appointment_id)
        stored = appointment.host_jwt if role == MeetingRole.HOST else appointment.client_jwt
        if not stored or not hmac.compare_digest(stored.encode(), token.encode()):
            raise MeetingAccessError(f"Token does not match the appointment {role.value} token")

        attended_flag = f"{role.value}_attended"
        if getattr(appointment, attended_flag):
            return AttendanceResult(appointment=appointment, already_recorded=True)

        if appointment.status == AppointmentStatus.CANCELLED:
            raise MeetingAccessError("Appointment has been cancelled")
        if now < appointment.scheduled_start - CHECK_IN_OPENS_BEFORE_START:
            raise MeetingAccessError("Meeting access is not yet available")
        if now > appointment.scheduled_end:
            raise MeetingAccessError("Meeting has already ended")

        setattr(appointment, attended_flag, True)
        current = AppointmentStatus(appointment.status)
        if (
            appointment.host_attended
            and appointment.client_attended
            and AppointmentStatus.ATTENDED in ALLOWED_STATUS_TRANSITIONS[current]
        ):
            appointment.status = AppointmentStatus.ATTENDED
            logger.info("Appointment %s attended by both parties", appointment.id)

    logger.info("Appointment %s: %s checked in", appointment_id, role.value)
    return AttendanceResult(appointment=appointment)
