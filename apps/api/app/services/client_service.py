"""Client service - client records and intake approval."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.models import Appointment, Client, Invoice, SessionNote
from app.services.scheduling_errors import (
    AppointmentNotFoundError,
    SchedulingValidationError,
)
from app.utils.normalization import normalize_email, normalize_name, normalize_phone
from app.utils.practice_time import utc_now

logger = logging.getLogger(__name__)

ClientDeletion = Literal["deleted", "archived"]

UPDATABLE_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone",
    "send_invoice_automatically",
    "default_rate",
}


def _normalized_fields(data: dict) -> dict:
    cleaned = dict(data)
    for key in ("first_name", "last_name"):
        if key in cleaned:
            cleaned[key] = normalize_name(cleaned[key])
            if not cleaned[key]:
                raise SchedulingValidationError(f"{key.replace('_', ' ').capitalize()} is required")
    if "email" in cleaned:
        cleaned["email"] = normalize_email(cleaned["email"])
        if not cleaned["email"]:
            raise SchedulingValidationError("Email is required")
    if "phone" in cleaned:
        try:
            cleaned["phone"] = normalize_phone(cleaned["phone"])
        except ValueError as e:
            raise SchedulingValidationError(str(e)) from e
    return cleaned


def get_client(db: Session, client_id: UUID) -> Client | None:
    return db.query(Client).filter(Client.id == client_id).first()


def require_client(db: Session, client_id: UUID) -> Client:
    client = get_client(db, client_id)
    if not client:
        raise AppointmentNotFoundError(f"Client {client_id} not found")
    return client


def require_bookable_client(db: Session, client_id: UUID) -> Client:
    """Existing, non-archived client."""
    client = require_client(db, client_id)
    if client.is_archived:
        raise SchedulingValidationError("Archived clients cannot be booked; restore the client first")
    return client


def get_client_by_email(db: Session, email: str) -> Client | None:
    normalized = normalize_email(email)
    if not normalized:
        return None
    return db.query(Client).filter(func.lower(Client.email) == normalized).first()


def list_clients(
    db: Session,
    confirmed: bool | None = None,
    search: str | None = None,
    include_archived: bool = False,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Client], int]:
    """Clients ordered by last name, with total count. Archived clients are hidden by default."""
    query = db.query(Client)
    if not include_archived:
        query = query.filter(Client.is_archived.is_(False))
    if confirmed is not None:
        query = query.filter(Client.confirmed.is_(confirmed))
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(
            func.lower(Client.first_name).like(pattern)
            | func.lower(Client.last_name).like(pattern)
            | func.lower(Client.email).like(pattern)
        )

    total = query.count()
    clients = query.order_by(
        Client.last_name, Client.first_name
    ).offset((page - 1) * per_page).limit(per_page).all()
    return clients, total


def create_client(
    db: Session,
    first_name: str,
    last_name: str,
    email: str,
    phone: str | None = None,
    confirmed: bool = True,
    send_invoice_automatically: bool = False,
    default_rate: Decimal | None = None,
    commit: bool = True,
) -> Client:
    """
    Create a client. Practitioner-created clients are confirmed right away.

    Re-using the email of an archived client restores that client with the
    new details, keeping its history.
    """
    data = _normalized_fields({
        "first_name": first_name,
        "last_name": last_name,
        "email": email,
        "phone": phone,
    })
    existing = get_client_by_email(db, data["email"])
    if existing and not existing.is_archived:
        raise SchedulingValidationError(f"A client with email {data['email']} already exists")

    if existing:
        client = existing
        for key, value in data.items():
            setattr(client, key, value)
        client.confirmed = confirmed
        client.send_invoice_automatically = send_invoice_automatically
        client.default_rate = default_rate
        client.is_archived = False
        client.archived_at = None
        logger.info("Archived client %s restored on re-creation", client.id)
    else:
        client = Client(
            **data,
            confirmed=confirmed,
            send_invoice_automatically=send_invoice_automatically,
            default_rate=default_rate,
        )
        db.add(client)
    if commit:
        db.commit()
        db.refresh(client)
    else:
        db.flush()
    logger.info("Client %s created (confirmed=%s)", client.id, confirmed)
    return client


def update_client(db: Session, client: Client, data: dict) -> Client:
    """Patch client fields (only keys present in data)."""
    unknown = set(data) - UPDATABLE_FIELDS
    if unknown:
        raise SchedulingValidationError(f"Unknown client fields: {', '.join(sorted(unknown))}")

    data = _normalized_fields(data)
    if "email" in data and data["email"] != client.email:
        existing = get_client_by_email(db, data["email"])
        if existing and existing.id != client.id:
            raise SchedulingValidationError(f"A client with email {data['email']} already exists")

    for key, value in data.items():
        setattr(client, key, value)
    db.commit()
    db.refresh(client)
    return client


def approve_client(db: Session, client_id: UUID) -> Client:
    client = require_client(db, client_id)
    if not client.confirmed:
        client.confirmed = True
        db.commit()
        db.refresh(client)
        logger.info("Client %s approved", client.id)
    return client


def _has_history(db: Session, client: Client) -> bool:
    for model in (Appointment, Invoice, SessionNote):
        if db.query(model.id).filter(model.client_id == client.id).first() is not None:
            return True
    return False


def archive_client(db: Session, client: Client, now: datetime | None = None) -> Client:
    """Soft-delete a client (set is_archived)."""
    if client.is_archived:
        return client  # Already archived

    client.is_archived = True
    client.archived_at = now or utc_now()
    db.commit()
    db.refresh(client)
    logger.info("Client %s archived", client.id)
    return client


def restore_client(db: Session, client_id: UUID) -> Client:
    client = require_client(db, client_id)
    if not client.is_archived:
        return client  # Already active

    client.is_archived = False
    client.archived_at = None
    db.commit()
    db.refresh(client)
    logger.info("Client %s restored", client.id)
    return client


def delete_client(db: Session, client_id: UUID, now: datetime | None = None) -> ClientDeletion:
    """
    Remove a client.

    Clients without appointments, invoices or notes are deleted outright;
    anyone with history is archived instead.

    Returns:
        "deleted" or "archived"
    """
    client = require_client(db, client_id)
    if _has_history(db, client):
        archive_client(db, client, now=now)
        return "archived"

    db.delete(client)
    db.commit()
    logger.info("Client %s deleted", client_id)
    return "deleted"


def reject_client(db: Session, client_id: UUID) -> None:
    """Delete an unconfirmed client together with its pending requests."""
    from app.services import appointment_service

    client = require_client(db, client_id)
    appointment_service.reject_client_requests(db, client)
