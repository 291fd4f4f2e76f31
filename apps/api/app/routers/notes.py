"""Notes router - practitioner notes on clients and sessions."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.core.deps import get_current_admin, get_db, require_csrf_header
from app.schemas.note import ClientNotesSummary, NoteCreate, NoteRead, NoteUpdate
from app.services import note_service
from app.services.scheduling_errors import SchedulingError
from app.routers.scheduling_shared import _raise_http

router = APIRouter(dependencies=[Depends(get_current_admin)])


@router.get("", response_model=list[NoteRead])
def list_notes(
    client_id: UUID | None = Query(None),
    appointment_id: UUID | None = Query(None),
    db: Session = Depends(get_db),
):
    """Notes, most recently edited first, optionally for one client or session."""
    notes = note_service.list_notes(db, client_id=client_id, appointment_id=appointment_id)
    return [note_service.to_note_read(n) for n in notes]


@router.get("/clients", response_model=list[ClientNotesSummary])
def list_clients_with_notes(
    db: Session = Depends(get_db),
):
    """Clients that have notes, with note count and last edit."""
    return [
        ClientNotesSummary(
            client_id=row.client.id,
            first_name=row.client.first_name,
            last_name=row.client.last_name,
            email=row.client.email,
            notes_count=row.notes_count,
            last_note_updated=row.last_note_updated,
        )
        for row in note_service.list_clients_with_notes(db)
    ]


@router.post(
    "",
    response_model=NoteRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_note(
    data: NoteCreate,
    db: Session = Depends(get_db),
):
    try:
        note = note_service.create_note(db, **data.model_dump())
    except SchedulingError as e:
        _raise_http(e)
    return note_service.to_note_read(note)


@router.post(
    "/appointments/{appointment_id}",
    response_model=NoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def get_or_create_appointment_note(
    appointment_id: UUID,
    response: Response,
    db: Session = Depends(get_db),
):
    """The session's note; created (201) on first use, titled after the meeting."""
    try:
        note, created = note_service.get_or_create_appointment_note(db, appointment_id)
    except SchedulingError as e:
        _raise_http(e)
    if created:
        response.status_code = 201
    return note_service.to_note_read(note)


@router.get("/{note_id}", response_model=NoteRead)
def get_note(
    note_id: UUID,
    db: Session = Depends(get_db),
):
    note = note_service.get_note(db, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note_service.to_note_read(note)


@router.patch(
    "/{note_id}",
    response_model=NoteRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_note(
    note_id: UUID,
    data: NoteUpdate,
    db: Session = Depends(get_db),
):
    note = note_service.get_note(db, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    try:
        note = note_service.update_note(db, note, data.model_dump(exclude_unset=True))
    except SchedulingError as e:
        _raise_http(e)
    return note_service.to_note_read(note)


@router.delete(
    "/{note_id}", status_code=204, dependencies=[Depends(require_csrf_header)]
)
def delete_note(
    note_id: UUID,
    db: Session = Depends(get_db),
):
    note = note_service.get_note(db, note_id)
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    note_service.delete_note(db, note)
