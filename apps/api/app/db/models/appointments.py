"""Appointment and scheduled email models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import (
    AppointmentFormat,
    AppointmentStatus,
    EmailStatus,
    EmailType,
    RecurringType,
)
from app.db.types import enum_column_type

if TYPE_CHECKING:
    from app.db.models import Client, Invoice, SessionNote


class Appointment(Base):
    """
    A session on the practitioner's single calendar.

    Instances of a recurring series share recurrent_id.
    Non-cancelled confirmed appointments never overlap.
    """

    __tablename__ = "appointments"
    __table_args__ = (
        Index("idx_appointments_schedule", "scheduled_start", "scheduled_end"),
        Index("idx_appointments_series", "recurrent_id"),
        Index("idx_appointments_client", "client_id"),
        CheckConstraint("scheduled_end > scheduled_start", name="ck_appointment_order"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )

    # Timing (UTC)
    scheduled_start: Mapped[datetime] = mapped_column(nullable=False)
    scheduled_end: Mapped[datetime] = mapped_column(nullable=False)

    format: Mapped[AppointmentFormat] = mapped_column(
        enum_column_type(AppointmentFormat), default=AppointmentFormat.FACE_TO_FACE, nullable=False
    )
    status: Mapped[AppointmentStatus] = mapped_column(
        enum_column_type(AppointmentStatus),
        default=AppointmentStatus.NOT_YET_ATTENDED,
        nullable=False,
    )
    # Pending-approval gate for public booking requests
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Recurrence
    is_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    recurring_type: Mapped[RecurringType | None] = mapped_column(
        enum_column_type(RecurringType), nullable=True
    )
    recurrent_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    # Video session tokens (opaque)
    host_jwt: Mapped[str | None] = mapped_column(Text, nullable=True)
    client_jwt: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Meeting check-in; both set means ATTENDED
    host_attended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    client_attended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="appointments")
    invoice: Mapped["Invoice | None"] = relationship(back_populates="appointment", uselist=False)
    notes: Mapped[list["SessionNote"]] = relationship(back_populates="appointment")


class EmailScheduleEntry(Base):
    """
    A reminder or invoice email owed for an appointment.

    appointment_id is a soft reference: entries outlive a deleted
    appointment (as CANCELLED) so the send history stays intact.
    At most one PENDING entry per (appointment_id, email_type).
    """

    __tablename__ = "email_schedule_entries"
    __table_args__ = (
        Index("idx_email_schedule_appt", "appointment_id", "email_type"),
        Index("idx_email_schedule_due", "status", "scheduled_for"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    email_type: Mapped[EmailType] = mapped_column(enum_column_type(EmailType), nullable=False)
    scheduled_for: Mapped[datetime] = mapped_column(nullable=False)

    recipient_email: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)

    # Status
    status: Mapped[EmailStatus] = mapped_column(
        enum_column_type(EmailStatus), default=EmailStatus.PENDING, nullable=False
    )
    sent_at: Mapped[datetime | None] = mapped_column(nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # External ID from email service
    external_message_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
