"""Email dispatch - sends due scheduled emails and records the outcome.

Called by the internal cron endpoint and the CLI. Each entry is committed
on its own so one failure never blocks the rest of the batch. FAILED
entries are not retried.
"""

import logging
from datetime import datetime
from typing import NamedTuple

from sqlalchemy.orm import Session

from app.db.enums import EmailType
from app.db.models import Appointment, Client, EmailScheduleEntry
from app.services import (
    appointment_email_service,
    email_scheduler_service,
    invoice_service,
    resend_email_service,
)
from app.services.notification_service import SendFn
from app.utils.practice_time import to_utc, utc_now

logger = logging.getLogger(__name__)


class DispatchSummary(NamedTuple):
    processed: int
    sent: int
    failed: int


def _render(db: Session, entry: EmailScheduleEntry) -> tuple[str, str]:
    appointment = db.get(Appointment, entry.appointment_id)
    if appointment is None:
        raise LookupError("Appointment not found")
    client = appointment.client or db.get(Client, appointment.client_id)

    invoice = None
    if entry.email_type == EmailType.INVOICE_DELIVERY:
        # Amount is read at send time so rate changes are picked up
        invoice = invoice_service.get_invoice_for_appointment(db, appointment.id)
        if invoice is None:
            raise LookupError("Invoice not found")

    variables = appointment_email_service.build_appointment_variables(appointment, client, invoice)
    return appointment_email_service.render_scheduled_email(entry, variables)


async def send_scheduled_email(
    db: Session,
    entry: EmailScheduleEntry,
    send_fn: SendFn | None = None,
) -> bool:
    """Render and send one entry, then mark it SENT or FAILED and commit."""
    send = send_fn or resend_email_service.send_email

    try:
        subject, body = _render(db, entry)
    except LookupError as e:
        email_scheduler_service.mark_email_failed(db, entry, str(e))
        db.commit()
        logger.warning("Email %s not sendable: %s", entry.id, e)
        return False

    try:
        result = await send(
            to_email=entry.recipient_email,
            to_name=entry.recipient_name,
            subject=subject,
            html=body,
            idempotency_key=f"scheduled-email/{entry.id}",
        )
    except Exception as e:
        email_scheduler_service.mark_email_failed(db, entry, f"{e.__class__.__name__}: {e}")
        db.commit()
        logger.exception("Email %s send raised", entry.id)
        return False

    if result.success:
        email_scheduler_service.mark_email_sent(
            db, entry, external_message_id=result.message_id
        )
    else:
        email_scheduler_service.mark_email_failed(db, entry, result.error or "Unknown error")
    db.commit()
    return result.success


async def process_due_emails(
    db: Session,
    send_fn: SendFn | None = None,
    now: datetime | None = None,
    buffer_minutes: int | None = None,
    limit: int | None = None,
) -> DispatchSummary:
    """Send every PENDING entry due by now + buffer (one batch)."""
    now = to_utc(now) if now else utc_now()
    entries = email_scheduler_service.find_due_emails(
        db, now=now, buffer_minutes=buffer_minutes, limit=limit
    )

    sent = 0
    failed = 0
    for entry in entries:
        if await send_scheduled_email(db, entry, send_fn=send_fn):
            sent += 1
        else:
            failed += 1

    if entries:
        logger.info("Email dispatch: %d processed, %d sent, %d failed", len(entries), sent, failed)
    return DispatchSummary(processed=len(entries), sent=sent, failed=failed)
