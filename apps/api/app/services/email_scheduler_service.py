"""Email scheduler - reminder and invoice emails owed for appointments.

Entries move PENDING → SENT | FAILED | CANCELLED and never leave a final
state. A reschedule cancels the pending entries and creates new ones instead
of patching scheduled_for in place.

Functions here only flush; the calling operation owns the transaction.
"""

import logging
from collections.abc import Collection
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.enums import EmailStatus, EmailType
from app.db.models import Appointment, Client, EmailScheduleEntry
from app.utils.practice_time import to_local, to_utc, utc_now

logger = logging.getLogger(__name__)


REMINDER_24H_BEFORE = timedelta(hours=24)
REMINDER_1H_BEFORE = timedelta(hours=1)
INVOICE_AFTER_END = timedelta(hours=1)

SUBJECTS = {
    EmailType.REMINDER_24H: "Reminder: your appointment is tomorrow",
    EmailType.REMINDER_1H: "Reminder: your appointment starts in 1 hour",
    EmailType.INVOICE_DELIVERY: "{practice_name} - Invoice for your session on {session_date}",
}


def _subject(email_type: EmailType, appointment: Appointment) -> str:
    return SUBJECTS[email_type].format(
        practice_name=settings.PRACTICE_NAME,
        session_date=to_local(appointment.scheduled_start).strftime("%d/%m/%Y"),
    )


def compute_email_times(
    appointment: Appointment,
    client: Client,
    include_reminders: bool = True,
    now: datetime | None = None,
) -> dict[EmailType, datetime]:
    """
    Send times owed for an appointment, omitting any already in the past.

    - 24h reminder only when include_reminders is set
    - 1h reminder always
    - invoice 1h after the end only for clients with automatic invoicing
    """
    now = to_utc(now) if now else utc_now()
    start = to_utc(appointment.scheduled_start)
    end = to_utc(appointment.scheduled_end)

    candidates: dict[EmailType, datetime] = {}
    if include_reminders:
        candidates[EmailType.REMINDER_24H] = start - REMINDER_24H_BEFORE
    candidates[EmailType.REMINDER_1H] = start - REMINDER_1H_BEFORE
    if client.send_invoice_automatically:
        candidates[EmailType.INVOICE_DELIVERY] = end + INVOICE_AFTER_END

    return {email_type: when for email_type, when in candidates.items() if when > now}


# =============================================================================
# Scheduling
# =============================================================================

def schedule_appointment_emails(
    db: Session,
    appointment: Appointment,
    include_reminders: bool = True,
    now: datetime | None = None,
) -> list[EmailScheduleEntry]:
    """Create PENDING entries for the appointment. Caller commits."""
    client = appointment.client or db.get(Client, appointment.client_id)

    entries = []
    for email_type, scheduled_for in compute_email_times(
        appointment, client, include_reminders=include_reminders, now=now
    ).items():
        entry = EmailScheduleEntry(
            appointment_id=appointment.id,
            email_type=email_type,
            scheduled_for=scheduled_for,
            recipient_email=client.email,
            recipient_name=client.full_name,
            subject=_subject(email_type, appointment),
            status=EmailStatus.PENDING,
        )
        db.add(entry)
        entries.append(entry)

    db.flush()
    logger.info(
        "Scheduled %d emails for appointment %s", len(entries), appointment.id
    )
    return entries


def cancel_appointment_emails(db: Session, appointment_id: UUID) -> int:
    """PENDING → CANCELLED for one appointment. Idempotent; returns count."""
    return cancel_series_appointment_emails(db, [appointment_id])


def cancel_series_appointment_emails(db: Session, appointment_ids: Collection[UUID]) -> int:
    """Bulk PENDING → CANCELLED for several appointments."""
    if not appointment_ids:
        return 0

    cancelled = db.query(EmailScheduleEntry).filter(
        EmailScheduleEntry.appointment_id.in_(list(appointment_ids)),
        EmailScheduleEntry.status == EmailStatus.PENDING,
    ).update(
        {EmailScheduleEntry.status: EmailStatus.CANCELLED},
        synchronize_session="fetch",
    )
    db.flush()
    if cancelled:
        logger.info(
            "Cancelled %d pending emails for %d appointments", cancelled, len(appointment_ids)
        )
    return cancelled


def reschedule_appointment_emails(
    db: Session,
    appointment: Appointment,
    now: datetime | None = None,
) -> list[EmailScheduleEntry]:
    """Cancel pending entries and recreate them from the current times.

    Reminders are always restored, even when the original booking
    suppressed the 24h reminder.
    """
    cancel_appointment_emails(db, appointment.id)
    return schedule_appointment_emails(db, appointment, include_reminders=True, now=now)


# =============================================================================
# Queries
# =============================================================================

def get_appointment_emails(
    db: Session,
    appointment_id: UUID,
    status: EmailStatus | None = None,
) -> list[EmailScheduleEntry]:
    query = db.query(EmailScheduleEntry).filter(
        EmailScheduleEntry.appointment_id == appointment_id
    )
    if status is not None:
        query = query.filter(EmailScheduleEntry.status == status)
    return query.order_by(EmailScheduleEntry.scheduled_for).all()


def find_due_emails(
    db: Session,
    now: datetime | None = None,
    buffer_minutes: int | None = None,
    limit: int | None = None,
) -> list[EmailScheduleEntry]:
    """PENDING entries due by now + buffer, oldest first."""
    now = to_utc(now) if now else utc_now()
    if buffer_minutes is None:
        buffer_minutes = settings.EMAIL_DISPATCH_BUFFER_MINUTES
    if limit is None:
        limit = settings.EMAIL_DISPATCH_BATCH_SIZE

    return db.query(EmailScheduleEntry).filter(
        EmailScheduleEntry.status == EmailStatus.PENDING,
        EmailScheduleEntry.scheduled_for <= now + timedelta(minutes=buffer_minutes),
    ).order_by(
        EmailScheduleEntry.scheduled_for
    ).limit(limit).all()


# =============================================================================
# Dispatch results
# =============================================================================

def mark_email_sent(
    db: Session,
    entry: EmailScheduleEntry,
    sent_at: datetime | None = None,
    external_message_id: str | None = None,
) -> bool:
    """PENDING → SENT. Returns False if the entry already left PENDING."""
    if entry.status != EmailStatus.PENDING:
        return False
    entry.status = EmailStatus.SENT
    entry.sent_at = sent_at or utc_now()
    entry.external_message_id = external_message_id
    entry.error_message = None
    db.flush()
    return True


def mark_email_failed(db: Session, entry: EmailScheduleEntry, error: str) -> bool:
    """PENDING → FAILED. Not retried here."""
    if entry.status != EmailStatus.PENDING:
        return False
    entry.status = EmailStatus.FAILED
    entry.error_message = error[:2000]
    db.flush()
    return True
