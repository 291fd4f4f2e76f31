"""
Tests for the email scheduler state machine.

Coverage:
- Which entries are owed (24h, 1h, invoice) and past-time omission
- Idempotent cancellation
- Reschedule without duplicates or stale entries
- Due-entry lookup and final-state protection
"""

from datetime import datetime, timedelta, timezone

import pytest

from app.db.enums import EmailStatus, EmailType
from app.db.models import Appointment
from app.services import email_scheduler_service


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


SCHEDULE_NOW = utc(2024, 5, 1)


def _appointment(db, client, start=utc(2024, 6, 3, 10), minutes=60) -> Appointment:
    appt = Appointment(
        client_id=client.id,
        client=client,
        scheduled_start=start,
        scheduled_end=start + timedelta(minutes=minutes),
        confirmed=True,
    )
    db.add(appt)
    db.flush()
    return appt


def _pending(db, appointment_id):
    return email_scheduler_service.get_appointment_emails(db, appointment_id, status=EmailStatus.PENDING)


# =============================================================================
# Scheduling
# =============================================================================

class TestScheduleAppointmentEmails:

    def test_reminders_without_invoice(self, db, practice_client):
        appt = _appointment(db, practice_client)

        entries = email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        by_type = {e.email_type: e.scheduled_for for e in entries}
        assert by_type == {
            EmailType.REMINDER_24H: utc(2024, 6, 2, 10),
            EmailType.REMINDER_1H: utc(2024, 6, 3, 9),
        }

    def test_invoice_one_hour_after_end(self, db, invoiced_client):
        appt = _appointment(db, invoiced_client)

        entries = email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        invoice = [e for e in entries if e.email_type == EmailType.INVOICE_DELIVERY]
        assert len(invoice) == 1
        assert invoice[0].scheduled_for == utc(2024, 6, 3, 12)
        assert invoice[0].subject.endswith("03/06/2024")

    def test_suppressed_24h_reminder(self, db, practice_client):
        appt = _appointment(db, practice_client)

        entries = email_scheduler_service.schedule_appointment_emails(
            db, appt, include_reminders=False, now=SCHEDULE_NOW
        )

        assert [e.email_type for e in entries] == [EmailType.REMINDER_1H]

    def test_past_times_are_omitted(self, db, invoiced_client):
        appt = _appointment(db, invoiced_client)

        # Two hours before the session: the 24h reminder is already late
        entries = email_scheduler_service.schedule_appointment_emails(
            db, appt, now=utc(2024, 6, 3, 8)
        )

        assert {e.email_type for e in entries} == {EmailType.REMINDER_1H, EmailType.INVOICE_DELIVERY}

    def test_recipient_copied_from_client(self, db, practice_client):
        appt = _appointment(db, practice_client)

        entry = email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)[0]

        assert entry.recipient_email == "alice@example.com"
        assert entry.recipient_name == "Alice Martin"
        assert entry.status == EmailStatus.PENDING


# =============================================================================
# Cancellation and Reschedule
# =============================================================================

class TestCancelAndReschedule:

    def test_cancel_is_idempotent(self, db, practice_client):
        appt = _appointment(db, practice_client)
        email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        first = email_scheduler_service.cancel_appointment_emails(db, appt.id)
        snapshot = {(e.id, e.status) for e in email_scheduler_service.get_appointment_emails(db, appt.id)}
        second = email_scheduler_service.cancel_appointment_emails(db, appt.id)

        assert first == 2
        assert second == 0
        assert {
            (e.id, e.status) for e in email_scheduler_service.get_appointment_emails(db, appt.id)
        } == snapshot
        assert all(status == EmailStatus.CANCELLED for _, status in snapshot)

    def test_cancel_leaves_sent_entries_alone(self, db, practice_client):
        appt = _appointment(db, practice_client)
        entries = email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)
        email_scheduler_service.mark_email_sent(db, entries[0], sent_at=utc(2024, 6, 2, 10))

        email_scheduler_service.cancel_appointment_emails(db, appt.id)

        db.refresh(entries[0])
        assert entries[0].status == EmailStatus.SENT

    def test_series_cancel(self, db, practice_client):
        first = _appointment(db, practice_client, start=utc(2024, 6, 3, 10))
        second = _appointment(db, practice_client, start=utc(2024, 6, 10, 10))
        for appt in (first, second):
            email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        cancelled = email_scheduler_service.cancel_series_appointment_emails(db, [first.id, second.id])

        assert cancelled == 4
        assert _pending(db, first.id) == []
        assert _pending(db, second.id) == []

    def test_reschedule_has_no_duplicates_or_stale_entries(self, db, invoiced_client):
        appt = _appointment(db, invoiced_client)
        email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        appt.scheduled_start = utc(2024, 6, 5, 14)
        appt.scheduled_end = utc(2024, 6, 5, 15)
        db.flush()
        email_scheduler_service.reschedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        pending = _pending(db, appt.id)
        assert sorted(e.email_type.value for e in pending) == sorted(
            t.value for t in (EmailType.REMINDER_24H, EmailType.REMINDER_1H, EmailType.INVOICE_DELIVERY)
        )
        assert {e.email_type: e.scheduled_for for e in pending} == {
            EmailType.REMINDER_24H: utc(2024, 6, 4, 14),
            EmailType.REMINDER_1H: utc(2024, 6, 5, 13),
            EmailType.INVOICE_DELIVERY: utc(2024, 6, 5, 16),
        }
        cancelled = email_scheduler_service.get_appointment_emails(
            db, appt.id, status=EmailStatus.CANCELLED
        )
        assert len(cancelled) == 3

    def test_reschedule_restores_suppressed_24h_reminder(self, db, practice_client):
        appt = _appointment(db, practice_client)
        email_scheduler_service.schedule_appointment_emails(
            db, appt, include_reminders=False, now=SCHEDULE_NOW
        )

        email_scheduler_service.reschedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        assert {e.email_type for e in _pending(db, appt.id)} == {
            EmailType.REMINDER_24H,
            EmailType.REMINDER_1H,
        }


# =============================================================================
# Dispatcher-facing
# =============================================================================

class TestDueEmails:

    def test_due_within_buffer_oldest_first(self, db, practice_client):
        appt = _appointment(db, practice_client)
        email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        # 24h reminder at 2024-06-02 10:00, 1h reminder at 2024-06-03 09:00
        due = email_scheduler_service.find_due_emails(db, now=utc(2024, 6, 2, 9, 56), buffer_minutes=5)
        assert [e.email_type for e in due] == [EmailType.REMINDER_24H]

        due = email_scheduler_service.find_due_emails(db, now=utc(2024, 6, 3, 12), buffer_minutes=5)
        assert [e.email_type for e in due] == [EmailType.REMINDER_24H, EmailType.REMINDER_1H]

    def test_batch_limit(self, db, practice_client):
        appt = _appointment(db, practice_client)
        email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)

        due = email_scheduler_service.find_due_emails(db, now=utc(2024, 6, 4), limit=1)
        assert len(due) == 1

    def test_final_states_cannot_be_marked_again(self, db, practice_client):
        appt = _appointment(db, practice_client)
        entry = email_scheduler_service.schedule_appointment_emails(db, appt, now=SCHEDULE_NOW)[0]

        assert email_scheduler_service.mark_email_failed(db, entry, "Mailbox full") is True
        assert email_scheduler_service.mark_email_sent(db, entry) is False
        assert entry.status == EmailStatus.FAILED
        assert entry.error_message == "Mailbox full"
