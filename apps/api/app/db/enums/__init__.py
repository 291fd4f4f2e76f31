"""Enum definitions for application constants."""

from app.db.enums.appointments import (
    ALLOWED_STATUS_TRANSITIONS,
    AppointmentFormat,
    AppointmentStatus,
    EditMode,
    MeetingRole,
    RecurringType,
)
from app.db.enums.availability import BusinessWeekday
from app.db.enums.email import EmailStatus, EmailType, NotificationKind
from app.db.enums.invoices import InvoiceStatus

__all__ = [
    "ALLOWED_STATUS_TRANSITIONS",
    "AppointmentFormat",
    "AppointmentStatus",
    "BusinessWeekday",
    "EditMode",
    "EmailStatus",
    "EmailType",
    "InvoiceStatus",
    "MeetingRole",
    "NotificationKind",
    "RecurringType",
]
