"""SQLAlchemy ORM models."""

from app.db.models.appointments import Appointment, EmailScheduleEntry
from app.db.models.availability import DateAvailabilityOverride, WeeklyAvailabilityBlock
from app.db.models.clients import Client
from app.db.models.invoices import Invoice
from app.db.models.notes import SessionNote

__all__ = [
    "Appointment",
    "Client",
    "DateAvailabilityOverride",
    "EmailScheduleEntry",
    "Invoice",
    "SessionNote",
    "WeeklyAvailabilityBlock",
]
