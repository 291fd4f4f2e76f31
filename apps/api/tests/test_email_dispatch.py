"""
Tests for scheduled email dispatch and immediate notifications.

Coverage:
- Due lookup with buffer and final states
- Invoice content rendered at send time
- Transport failures and missing appointments
- Notification delivery after lifecycle operations
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from app.db.enums import EmailStatus, EmailType
from app.db.models import EmailScheduleEntry, Invoice
from app.services import (
    appointment_service,
    email_dispatch_service,
    email_scheduler_service,
    notification_service,
)

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def _book(db, client):
    return appointment_service.create_appointment(
        db,
        client.id,
        datetime(2024, 6, 3, 10, tzinfo=timezone.utc),
        datetime(2024, 6, 3, 11, tzinfo=timezone.utc),
        now=NOW,
    ).appointments[0]


def _entries_by_type(db, appointment_id) -> dict[EmailType, EmailScheduleEntry]:
    return {
        e.email_type: e for e in email_scheduler_service.get_appointment_emails(db, appointment_id)
    }


# =============================================================================
# Scheduled Emails
# =============================================================================

class TestProcessDueEmails:

    async def test_only_due_entries_are_sent(self, db, weekday_template, invoiced_client, fake_sender):
        appt = _book(db, invoiced_client)

        summary = await email_dispatch_service.process_due_emails(
            db, send_fn=fake_sender, now=datetime(2024, 6, 2, 9, 57, tzinfo=timezone.utc)
        )

        assert summary == (1, 1, 0)
        entries = _entries_by_type(db, appt.id)
        assert entries[EmailType.REMINDER_24H].status == EmailStatus.SENT
        assert entries[EmailType.REMINDER_24H].external_message_id == "msg-1"
        assert entries[EmailType.REMINDER_1H].status == EmailStatus.PENDING
        assert fake_sender.sent[0]["idempotency_key"] == f"scheduled-email/{entries[EmailType.REMINDER_24H].id}"
        assert fake_sender.sent[0]["to_email"] == "bruno@example.com"

    async def test_sent_entries_are_not_sent_again(self, db, weekday_template, practice_client, fake_sender):
        _book(db, practice_client)
        later = datetime(2024, 6, 3, 9, tzinfo=timezone.utc)

        first = await email_dispatch_service.process_due_emails(db, send_fn=fake_sender, now=later)
        second = await email_dispatch_service.process_due_emails(db, send_fn=fake_sender, now=later)

        assert first.sent == 2
        assert second.processed == 0
        assert len(fake_sender.sent) == 2

    async def test_invoice_uses_current_amount(self, db, weekday_template, invoiced_client, fake_sender):
        appt = _book(db, invoiced_client)
        invoice = db.query(Invoice).filter(Invoice.appointment_id == appt.id).one()
        invoice.amount = Decimal("120.00")
        db.commit()

        await email_dispatch_service.process_due_emails(
            db, send_fn=fake_sender, now=datetime(2024, 6, 3, 12, tzinfo=timezone.utc)
        )

        invoice_mail = [m for m in fake_sender.sent if "Invoice" in m["subject"]]
        assert len(invoice_mail) == 1
        assert invoice_mail[0]["subject"] == "Practice - Invoice for your session on 03/06/2024"
        assert "120.00 EUR" in invoice_mail[0]["html"]

    async def test_transport_failure_marks_failed(self, db, weekday_template, practice_client, fake_sender):
        appt = _book(db, practice_client)
        fake_sender.fail_for.add("alice@example.com")

        summary = await email_dispatch_service.process_due_emails(
            db, send_fn=fake_sender, now=datetime(2024, 6, 3, 9, tzinfo=timezone.utc)
        )

        assert summary.failed == 2
        for entry in email_scheduler_service.get_appointment_emails(db, appt.id):
            assert entry.status == EmailStatus.FAILED
            assert entry.error_message == "Mailbox unavailable"

    async def test_sender_exception_marks_failed(self, db, weekday_template, practice_client):
        appt = _book(db, practice_client)

        async def broken(**kwargs):
            raise RuntimeError("smtp down")

        summary = await email_dispatch_service.process_due_emails(
            db, send_fn=broken, now=datetime(2024, 6, 2, 10, tzinfo=timezone.utc)
        )

        assert summary.failed == 1
        entry = _entries_by_type(db, appt.id)[EmailType.REMINDER_24H]
        assert entry.error_message == "RuntimeError: smtp down"

    async def test_missing_appointment_marks_failed(self, db, fake_sender):
        entry = EmailScheduleEntry(
            appointment_id=uuid4(),
            email_type=EmailType.REMINDER_1H,
            scheduled_for=NOW - timedelta(minutes=1),
            recipient_email="ghost@example.com",
            recipient_name="Ghost",
            subject="Reminder",
            status=EmailStatus.PENDING,
        )
        db.add(entry)
        db.commit()

        summary = await email_dispatch_service.process_due_emails(db, send_fn=fake_sender, now=NOW)

        assert summary == (1, 0, 1)
        db.refresh(entry)
        assert entry.status == EmailStatus.FAILED
        assert entry.error_message == "Appointment not found"
        assert fake_sender.sent == []

    async def test_cancelled_entries_are_skipped(self, db, weekday_template, practice_client, fake_sender):
        appt = _book(db, practice_client)
        appointment_service.delete_appointment(db, appt.id)

        summary = await email_dispatch_service.process_due_emails(
            db, send_fn=fake_sender, now=datetime(2024, 6, 3, 11, tzinfo=timezone.utc)
        )

        assert summary.processed == 0


# =============================================================================
# Immediate Notifications
# =============================================================================

class TestDeliverNotifications:

    async def test_confirmation_is_rendered(self, db, weekday_template, practice_client, fake_sender):
        result = appointment_service.create_appointment(
            db,
            practice_client.id,
            datetime(2024, 6, 3, 10, tzinfo=timezone.utc),
            datetime(2024, 6, 3, 11, tzinfo=timezone.utc),
            now=NOW,
        )

        delivered = await notification_service.deliver_notifications(result.notifications, send_fn=fake_sender)

        assert delivered == 1
        mail = fake_sender.sent[0]
        assert mail["subject"] == "Appointment confirmed - Monday 03/06/2024"
        assert "10:00 - 11:00" in mail["html"]
        assert mail["idempotency_key"].startswith("notification/appointment_confirmation/")

    async def test_failures_do_not_raise(self, db, weekday_template, practice_client, fake_sender):
        result = appointment_service.create_appointment(
            db,
            practice_client.id,
            datetime(2024, 6, 3, 10, tzinfo=timezone.utc),
            datetime(2024, 6, 3, 11, tzinfo=timezone.utc),
            now=NOW,
        )

        async def broken(**kwargs):
            raise RuntimeError("smtp down")

        assert await notification_service.deliver_notifications(result.notifications, send_fn=broken) == 0
        fake_sender.fail_for.add("alice@example.com")
        assert await notification_service.deliver_notifications(result.notifications, send_fn=fake_sender) == 0
