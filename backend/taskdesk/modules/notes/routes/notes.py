from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.rbac import Actor
from taskdesk.modules.notes.schemas import NoteCreate, NotePageResponse, NoteResponse, NoteUpdate
from taskdesk.modules.notes.services import notes_service


router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.get("", response_model=NotePageResponse)
def GetNotes(
    user_id: Optional[str] = Query(None, alias="UserId", max_length=36),
    q: Optional[str] = Query(None, alias="Q", max_length=255),
    category_id: Optional[str] = Query(None, alias="CategoryId", max_length=36),
    pinned: Optional[bool] = Query(None, alias="Pinned"),
    page: int = Query(1, alias="Page", ge=1),
    limit: int = Query(notes_service.DEFAULT_PAGE_LIMIT, alias="Limit", ge=1, le=notes_service.MAX_PAGE_LIMIT),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
):
    """Get notes for the actor or a user they may access."""
    notes, meta = notes_service.GetNotes(db, actor, lookup, user_id, q, category_id, pinned, page, limit)
    return NotePageResponse(Data=notes, Meta=meta)


@router.post("", response_model=NoteResponse, status_code=201)
def CreateNote(
    data: NoteCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
):
    """Create a new note."""
    return NoteResponse(Data=notes_service.CreateNote(db, actor, lookup, data))


@router.get("/{note_id}", response_model=NoteResponse)
def GetNote(
    note_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
):
    """Get a single note by ID."""
    return NoteResponse(Data=notes_service.GetNoteById(db, actor, lookup, note_id))


@router.patch("/{note_id}", response_model=NoteResponse)
def UpdateNote(
    note_id: str,
    data: NoteUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
):
    """Update an existing note."""
    return NoteResponse(Data=notes_service.UpdateNote(db, actor, lookup, note_id, data))


@router.delete("/{note_id}")
def DeleteNote(
    note_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
):
    """Delete a note."""
    notes_service.DeleteNote(db, actor, lookup, note_id)
    return {"Data": {"Id": note_id}}
