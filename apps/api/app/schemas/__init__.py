"""Pydantic schemas for API request/response models."""

from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentRead,
    AppointmentStatusUpdate,
    AppointmentUpdate,
    ApproveRequest,
    AttendanceRead,
    BookingRequestCreate,
    BookingRequestResponse,
    BookingResponse,
    DeletionResponse,
    EmailScheduleEntryRead,
    FailedInstanceRead,
    InstantMeetingCreate,
    MeetingCheckIn,
    PublicSlotRead,
    SkippedInstanceRead,
)
from app.schemas.availability import (
    AvailabilityCheckRequest,
    AvailabilityCheckResponse,
    DateOverrideRead,
    DateOverrideSet,
    DateRangeClose,
    DateRangeCloseResponse,
    ResolvedDayRead,
    TimeSlotSchema,
    WeeklyBlockInput,
    WeeklyBlockRead,
    WeeklyTemplateSet,
)
from app.schemas.client import (
    ClientCreate,
    ClientDeleteResponse,
    ClientListResponse,
    ClientRead,
    ClientUpdate,
)
from app.schemas.invoice import InvoicePaymentUpdate, InvoiceRead
from app.schemas.note import ClientNotesSummary, NoteCreate, NoteRead, NoteUpdate

__all__ = [
    # Appointments
    "AppointmentCreate",
    "AppointmentRead",
    "AppointmentStatusUpdate",
    "AppointmentUpdate",
    "ApproveRequest",
    "BookingResponse",
    "DeletionResponse",
    "EmailScheduleEntryRead",
    "FailedInstanceRead",
    "InstantMeetingCreate",
    "SkippedInstanceRead",
    # Meeting check-in
    "AttendanceRead",
    "MeetingCheckIn",
    # Public booking
    "BookingRequestCreate",
    "BookingRequestResponse",
    "PublicSlotRead",
    # Availability
    "AvailabilityCheckRequest",
    "AvailabilityCheckResponse",
    "DateOverrideRead",
    "DateOverrideSet",
    "DateRangeClose",
    "DateRangeCloseResponse",
    "ResolvedDayRead",
    "TimeSlotSchema",
    "WeeklyBlockInput",
    "WeeklyBlockRead",
    "WeeklyTemplateSet",
    # Clients
    "ClientCreate",
    "ClientDeleteResponse",
    "ClientListResponse",
    "ClientRead",
    "ClientUpdate",
    # Invoices
    "InvoicePaymentUpdate",
    "InvoiceRead",
    # Notes
    "ClientNotesSummary",
    "NoteCreate",
    "NoteRead",
    "NoteUpdate",
]
