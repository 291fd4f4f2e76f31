"""Invoice model."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Numeric, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.db.enums import InvoiceStatus
from app.db.types import enum_column_type

if TYPE_CHECKING:
    from app.db.models import Appointment, Client


class Invoice(Base):
    """Invoice for one session. Survives deletion of the appointment."""

    __tablename__ = "invoices"
    __table_args__ = (
        Index("idx_invoices_client", "client_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    appointment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True, unique=True
    )
    client_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[InvoiceStatus] = mapped_column(
        enum_column_type(InvoiceStatus), default=InvoiceStatus.UNPAID, nullable=False
    )

    issued_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    appointment: Mapped["Appointment | None"] = relationship(back_populates="invoice")
    client: Mapped["Client"] = relationship(back_populates="invoices")
