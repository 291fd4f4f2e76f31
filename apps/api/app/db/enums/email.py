"""Email-related enums."""

from enum import Enum


class EmailType(str, Enum):
    """Scheduled emails owed for an appointment."""

    REMINDER_24H = "reminder_24h"
    REMINDER_1H = "reminder_1h"
    INVOICE_DELIVERY = "invoice_delivery"


class EmailStatus(str, Enum):
    """
    Status of a scheduled email entry.

    Flow: pending → sent | failed | cancelled (all final)
    """

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"


class NotificationKind(str, Enum):
    """Immediate (unscheduled) emails sent on lifecycle events."""

    APPOINTMENT_CONFIRMATION = "appointment_confirmation"
    SERIES_CONFIRMATION = "series_confirmation"
    APPOINTMENT_CANCELLATION = "appointment_cancellation"
    BOOKING_REQUEST_RECEIVED = "booking_request_received"
