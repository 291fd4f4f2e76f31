"""Clients router - client records."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.schemas.client import (
    ClientCreate,
    ClientDeleteResponse,
    ClientListResponse,
    ClientRead,
    ClientUpdate,
)
from app.services import client_service
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import _raise_http

router = APIRouter(dependencies=[Depends(get_current_admin)])

DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100


def _client_to_read(client) -> ClientRead:
    return ClientRead(
        id=client.id,
        first_name=client.first_name,
        last_name=client.last_name,
        full_name=client.full_name,
        email=client.email,
        phone=client.phone,
        confirmed=client.confirmed,
        send_invoice_automatically=client.send_invoice_automatically,
        default_rate=client.default_rate,
        is_archived=client.is_archived,
        archived_at=client.archived_at,
        created_at=client.created_at,
    )


@router.get("", response_model=ClientListResponse)
def list_clients(
    confirmed: bool | None = Query(None),
    q: str | None = Query(None, max_length=100),
    include_archived: bool = Query(False),
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
):
    """List clients with optional confirmation filter and search."""
    clients, total = client_service.list_clients(
        db,
        confirmed=confirmed,
        search=q,
        include_archived=include_archived,
        page=page,
        per_page=per_page,
    )
    return ClientListResponse(
        items=[_client_to_read(c) for c in clients],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post(
    "",
    response_model=ClientRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_client(
    data: ClientCreate,
    db: Session = Depends(get_db),
):
    try:
        client = client_service.create_client(db, **data.model_dump())
    except SchedulingError as e:
        _raise_http(e)
    return _client_to_read(client)


@router.get("/{client_id}", response_model=ClientRead)
def get_client(
    client_id: UUID,
    db: Session = Depends(get_db),
):
    client = client_service.get_client(db, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    return _client_to_read(client)


@router.patch(
    "/{client_id}",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_client(
    client_id: UUID,
    data: ClientUpdate,
    db: Session = Depends(get_db),
):
    client = client_service.get_client(db, client_id)
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    try:
        client = client_service.update_client(db, client, data.model_dump(exclude_unset=True))
    except SchedulingError as e:
        _raise_http(e)
    return _client_to_read(client)


@router.delete(
    "/{client_id}",
    response_model=ClientDeleteResponse,
    dependencies=[Depends(require_csrf_header)],
)
def delete_client(
    client_id: UUID,
    db: Session = Depends(get_db),
):
    """
    Delete a client, or archive it when it has appointments, invoices or notes.

    Archived clients are hidden from the list and cannot be booked until
    restored.
    """
    try:
        outcome = client_service.delete_client(db, client_id)
    except SchedulingError as e:
        _raise_http(e)
    return ClientDeleteResponse(client_id=client_id, outcome=outcome)


@router.post(
    "/{client_id}/restore",
    response_model=ClientRead,
    dependencies=[Depends(require_csrf_header)],
)
def restore_client(
    client_id: UUID,
    db: Session = Depends(get_db),
):
    try:
        client = client_service.restore_client(db, client_id)
    except SchedulingError as e:
        _raise_http(e)
    return _client_to_read(client)
