"""Invoice schemas."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from app.db.enums import InvoiceStatus


class InvoiceRead(BaseModel):
    id: UUID
    client_id: UUID
    client_name: str
    client_email: str
    appointment_id: UUID | None
    appointment_start: datetime | None
    appointment_end: datetime | None
    amount: Decimal
    status: InvoiceStatus
    issued_at: datetime
    paid_at: datetime | None


class InvoicePaymentUpdate(BaseModel):
    paid: bool
