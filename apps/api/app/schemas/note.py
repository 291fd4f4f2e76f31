"""Pydantic schemas for session notes."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

MAX_NOTE_CONTENT = 50_000


class NoteCreate(BaseModel):
    """Request to add a note. The client is taken from the appointment when omitted."""

    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field("", max_length=MAX_NOTE_CONTENT)
    client_id: UUID | None = None
    appointment_id: UUID | None = None


class NoteUpdate(BaseModel):
    """Partial update - only fields set in the request are applied."""

    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = Field(None, max_length=MAX_NOTE_CONTENT)
    client_id: UUID | None = None
    appointment_id: UUID | None = None


class NoteRead(BaseModel):
    """Note response."""

    id: UUID
    title: str
    content: str
    client_id: UUID | None
    client_name: str | None = None
    appointment_id: UUID | None
    appointment_start: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ClientNotesSummary(BaseModel):
    client_id: UUID
    first_name: str
    last_name: str
    email: str
    notes_count: int
    last_note_updated: datetime | None
