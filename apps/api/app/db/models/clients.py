"""Client model."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base

if TYPE_CHECKING:
    from app.db.models import Appointment, Invoice, SessionNote


class Client(Base):
    """
    A person seen by the practitioner.

    Clients created through the public booking form start unconfirmed and
    must be approved before their appointments count as confirmed.
    """

    __tablename__ = "clients"
    __table_args__ = (
        Index("idx_clients_confirmed", "confirmed"),
        Index("idx_clients_archived", "is_archived"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Intake approval gate
    confirmed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Billing
    send_invoice_automatically: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    default_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)

    # Soft delete: clients with history are archived instead of removed
    is_archived: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    archived_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    # Relationships
    appointments: Mapped[list["Appointment"]] = relationship(
        back_populates="client", cascade="all, delete-orphan", passive_deletes=True
    )
    invoices: Mapped[list["Invoice"]] = relationship(
        back_populates="client", cascade="all, delete-orphan", passive_deletes=True
    )
    notes: Mapped[list["SessionNote"]] = relationship(back_populates="client")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
