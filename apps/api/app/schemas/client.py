"""Client schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field


class ClientCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: str | None = Field(None, max_length=50)
    send_invoice_automatically: bool = False
    default_rate: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class ClientUpdate(BaseModel):
    """Partial update - only fields set in the request are applied."""
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=50)
    send_invoice_automatically: bool | None = None
    default_rate: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)


class ClientRead(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str | None
    confirmed: bool
    send_invoice_automatically: bool
    default_rate: Decimal | None
    is_archived: bool
    archived_at: datetime | None
    created_at: datetime


class ClientListResponse(BaseModel):
    items: list[ClientRead]
    total: int
    page: int
    per_page: int


class ClientDeleteResponse(BaseModel):
    """Whether the client was removed or archived because of its history."""
    client_id: UUID
    outcome: Literal["deleted", "archived"]
