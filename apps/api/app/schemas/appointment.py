"""Appointment schemas - Pydantic models for appointments API."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.db.enums import (
    AppointmentFormat,
    AppointmentStatus,
    EditMode,
    EmailStatus,
    EmailType,
    InvoiceStatus,
    RecurringType,
)
from app.utils.practice_time import to_utc


# =============================================================================
# Practitioner Booking
# =============================================================================

class AppointmentCreate(BaseModel):
    """Book a single appointment or a recurring series."""
    client_id: UUID
    start_time: datetime
    end_time: datetime
    format: AppointmentFormat = AppointmentFormat.FACE_TO_FACE
    rate: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)

    is_recurring: bool = False
    recurring_type: RecurringType | None = None
    recurring_until: date | None = None
    occurrences: int | None = Field(None, ge=1)

    @model_validator(mode="after")
    def check_recurrence(self) -> "AppointmentCreate":
        # Naive values are practice-local and may be mixed with aware ones
        if to_utc(self.end_time) <= to_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.is_recurring:
            if self.recurring_type is None:
                raise ValueError("recurring_type is required for a recurring series")
            if self.recurring_until is None and self.occurrences is None:
                raise ValueError("recurring_until or occurrences is required for a recurring series")
        return self


class InstantMeetingCreate(BaseModel):
    """Start an online session now."""
    client_id: UUID
    duration_minutes: int = Field(60, ge=5, le=480)


class AppointmentUpdate(BaseModel):
    """Move and/or change the format of one appointment or its series."""
    start_time: datetime | None = None
    end_time: datetime | None = None
    format: AppointmentFormat | None = None
    edit_mode: EditMode = EditMode.SINGLE


class AppointmentStatusUpdate(BaseModel):
    """Attendance status and/or payment flag."""
    status: AppointmentStatus | None = None
    paid: bool | None = None

    @model_validator(mode="after")
    def check_not_empty(self) -> "AppointmentStatusUpdate":
        if self.status is None and self.paid is None:
            raise ValueError("status or paid is required")
        return self


class ApproveRequest(BaseModel):
    rate: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


# =============================================================================
# Responses
# =============================================================================

class AppointmentRead(BaseModel):
    id: UUID
    client_id: UUID
    client_name: str
    client_email: str
    start_time: datetime
    end_time: datetime
    format: AppointmentFormat
    status: AppointmentStatus
    confirmed: bool
    is_recurring: bool
    recurring_type: RecurringType | None
    recurrent_id: UUID | None
    host_attended: bool
    client_attended: bool
    meeting_url: str | None
    invoice_amount: Decimal | None
    invoice_status: InvoiceStatus | None
    created_at: datetime
    updated_at: datetime


class SkippedInstanceRead(BaseModel):
    start_time: datetime
    end_time: datetime
    reason: str


class BookingResponse(BaseModel):
    appointments: list[AppointmentRead]
    skipped: list[SkippedInstanceRead] = Field(default_factory=list)
    recurrent_id: UUID | None = None


class DeletionResponse(BaseModel):
    deleted_ids: list[UUID]
    cancelled_emails: int


class EmailScheduleEntryRead(BaseModel):
    id: UUID
    appointment_id: UUID
    email_type: EmailType
    scheduled_for: datetime
    recipient_email: str
    subject: str
    status: EmailStatus
    sent_at: datetime | None
    error_message: str | None


class FailedInstanceRead(BaseModel):
    appointment_id: UUID
    start_time: datetime
    end_time: datetime
    reason: str


# =============================================================================
# Public Booking
# =============================================================================

class PublicSlotRead(BaseModel):
    start_time: datetime
    end_time: datetime


class BookingRequestCreate(BaseModel):
    """Public booking request; awaits practitioner approval."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    start_time: datetime
    end_time: datetime
    format: AppointmentFormat = AppointmentFormat.FACE_TO_FACE

    @model_validator(mode="after")
    def check_order(self) -> "BookingRequestCreate":
        if to_utc(self.end_time) <= to_utc(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class BookingRequestResponse(BaseModel):
    """What the requester sees - never the full appointment."""
    appointment_id: UUID
    start_time: datetime
    end_time: datetime
    status: str = "pending_approval"


# =============================================================================
# Meeting Check-in
# =============================================================================

class MeetingCheckIn(BaseModel):
    """Sent by the meeting page when a participant joins."""
    appointment_id: UUID
    jwt: str = Field(..., min_length=1)


class AttendanceRead(BaseModel):
    appointment_id: UUID
    host_attended: bool
    client_attended: bool
    status: AppointmentStatus
    already_recorded: bool
