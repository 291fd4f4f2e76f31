"""Note service - practitioner notes on clients and sessions."""

import logging
from datetime import datetime
from typing import NamedTuple
from uuid import UUID

import nh3
from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.db.models import Client, SessionNote
from app.schemas.note import NoteRead
from app.services import appointment_service, client_service, video_service
from app.services.scheduling_errors import SchedulingValidationError
from app.utils.practice_time import utc_now

logger = logging.getLogger(__name__)

# Allowed HTML tags for the rich text editor
ALLOWED_TAGS = {"p", "br", "strong", "em", "u", "ul", "ol", "li", "a", "blockquote", "h1", "h2", "h3", "code", "pre"}
ALLOWED_ATTRIBUTES = {"a": {"href", "target"}}

UPDATABLE_FIELDS = {"title", "content", "client_id", "appointment_id"}


class ClientNotes(NamedTuple):
    client: Client
    notes_count: int
    last_note_updated: datetime | None


def sanitize_html(html: str) -> str:
    """Sanitize HTML to prevent XSS, allowing only safe rich text tags."""
    return nh3.clean(html, tags=ALLOWED_TAGS, attributes=ALLOWED_ATTRIBUTES)


def _clean_title(title: str) -> str:
    cleaned = " ".join((title or "").split())
    if not cleaned:
        raise SchedulingValidationError("Title is required")
    return cleaned


def _check_references(db: Session, note: SessionNote, infer_client: bool = False) -> None:
    """Referenced rows exist; an appointment note belongs to the appointment's client."""
    if note.client_id is not None:
        client_service.require_client(db, note.client_id)
    if note.appointment_id is None:
        return

    appointment = appointment_service.require_appointment(db, note.appointment_id)
    if note.client_id is None:
        if infer_client:
            note.client_id = appointment.client_id
    elif note.client_id != appointment.client_id:
        raise SchedulingValidationError("Appointment belongs to a different client")


def _notes_query(db: Session):
    return db.query(SessionNote).options(
        joinedload(SessionNote.client),
        joinedload(SessionNote.appointment),
    )


# =============================================================================
# Reads
# =============================================================================

def get_note(db: Session, note_id: UUID) -> SessionNote | None:
    return _notes_query(db).filter(SessionNote.id == note_id).first()


def list_notes(
    db: Session,
    client_id: UUID | None = None,
    appointment_id: UUID | None = None,
) -> list[SessionNote]:
    """Notes, most recently edited first."""
    query = _notes_query(db)
    if client_id is not None:
        query = query.filter(SessionNote.client_id == client_id)
    if appointment_id is not None:
        query = query.filter(SessionNote.appointment_id == appointment_id)
    return query.order_by(SessionNote.updated_at.desc(), SessionNote.created_at.desc()).all()


def list_clients_with_notes(db: Session) -> list[ClientNotes]:
    """Active clients that have notes, most recently noted first."""
    last_updated = func.max(SessionNote.updated_at)
    rows = (
        db.query(Client, func.count(SessionNote.id), last_updated)
        .join(SessionNote, SessionNote.client_id == Client.id)
        .filter(Client.is_archived.is_(False))
        .group_by(Client.id)
        .order_by(last_updated.desc(), Client.last_name)
        .all()
    )
    return [ClientNotes(client=c, notes_count=count, last_note_updated=last) for c, count, last in rows]


def to_note_read(note: SessionNote) -> NoteRead:
    """Convert SessionNote model to NoteRead schema."""
    return NoteRead(
        id=note.id,
        title=note.title,
        content=note.content,
        client_id=note.client_id,
        client_name=note.client.full_name if note.client else None,
        appointment_id=note.appointment_id,
        appointment_start=note.appointment.scheduled_start if note.appointment else None,
        created_at=note.created_at,
        updated_at=note.updated_at,
    )


# =============================================================================
# Writes
# =============================================================================

def create_note(
    db: Session,
    title: str,
    content: str = "",
    client_id: UUID | None = None,
    appointment_id: UUID | None = None,
    now: datetime | None = None,
) -> SessionNote:
    """Create a note. Without an explicit client, the appointment's client is used."""
    now = now or utc_now()
    note = SessionNote(
        title=_clean_title(title),
        content=sanitize_html(content or ""),
        client_id=client_id,
        appointment_id=appointment_id,
        created_at=now,
        updated_at=now,
    )
    _check_references(db, note, infer_client=True)

    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info("Note %s created (client=%s, appointment=%s)", note.id, note.client_id, note.appointment_id)
    return note


def update_note(db: Session, note: SessionNote, data: dict, now: datetime | None = None) -> SessionNote:
    """
    Patch note fields (only keys present in data).

    client_id and appointment_id may be set to None to detach the note.
    """
    unknown = set(data) - UPDATABLE_FIELDS
    if unknown:
        raise SchedulingValidationError(f"Unknown note fields: {', '.join(sorted(unknown))}")

    if "title" in data:
        data["title"] = _clean_title(data["title"])
    if "content" in data:
        data["content"] = sanitize_html(data["content"] or "")

    for key, value in data.items():
        setattr(note, key, value)
    try:
        _check_references(db, note)
    except Exception:
        db.rollback()
        raise

    note.updated_at = now or utc_now()
    db.commit()
    db.refresh(note)
    return note


def delete_note(db: Session, note: SessionNote) -> None:
    """Delete a note."""
    db.delete(note)
    db.commit()


def get_or_create_appointment_note(
    db: Session,
    appointment_id: UUID,
    now: datetime | None = None,
) -> tuple[SessionNote, bool]:
    """
    The session's note, created on first use and titled after the meeting.

    Returns:
        (note, created)
    """
    appointment = appointment_service.require_appointment(db, appointment_id)
    existing = _notes_query(db).filter(
        SessionNote.appointment_id == appointment.id
    ).order_by(SessionNote.created_at).first()
    if existing:
        return existing, False

    note = create_note(
        db,
        title=video_service.meeting_name(appointment.client.full_name, appointment.scheduled_start),
        client_id=appointment.client_id,
        appointment_id=appointment.id,
        now=now,
    )
    return note, True
