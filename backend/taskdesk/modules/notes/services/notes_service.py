from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from fastapi import HTTPException

from taskdesk.modules.auth.utils.ownership import ResolveTargetOrRaise, ResourceAccessError
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup, IsLockedForOwner
from taskdesk.modules.categories.models import Category
from taskdesk.modules.core.schemas import PageMeta, Paginate
from taskdesk.modules.notes.models import Note
from taskdesk.modules.notes.schemas import NoteCreate, NoteOut, NoteUpdate
from taskdesk.modules.notes.utils import rbac

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100


def _ResolveTarget(actor: Actor, requested_user_id: Optional[str], lookup: AssignmentLookup) -> str:
    try:
        return ResolveTargetOrRaise(actor, requested_user_id, lookup)
    except ResourceAccessError as exc:
        raise HTTPException(status_code=403, detail=str(exc)) from exc


def _EnsureCategory(db: Session, category_id: Optional[str], user_id: str) -> None:
    if not category_id:
        return
    exists = (
        db.query(Category.Id)
        .filter(Category.Id == category_id, Category.UserId == user_id)
        .first()
    )
    if not exists:
        raise HTTPException(status_code=400, detail="Category does not exist for selected user")


def _GetNote(db: Session, note_id: str) -> Note:
    note = db.query(Note).filter(Note.Id == note_id).first()
    if not note:
        raise HTTPException(status_code=404, detail="Note not found")
    return note


def _CleanText(value: str, field: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail=f"{field} required")
    return cleaned


def BuildNoteOut(actor: Actor, note: Note) -> NoteOut:
    return NoteOut.model_validate(note).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, note.UserId, note.CreatedByUserId)}
    )


def GetNotes(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: Optional[str],
    search: Optional[str] = None,
    category_id: Optional[str] = None,
    pinned: Optional[bool] = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> tuple[list[NoteOut], PageMeta]:
    """List a user's notes, pinned first and then most recently updated."""
    target_user_id = _ResolveTarget(actor, requested_user_id, lookup)
    query = db.query(Note).filter(Note.UserId == target_user_id)

    term = (search or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(Note.Title.ilike(pattern), Note.Content.ilike(pattern)))
    if category_id:
        query = query.filter(Note.CategoryId == category_id)
    if pinned is not None:
        query = query.filter(Note.Pinned == pinned)

    query = query.order_by(Note.Pinned.desc(), Note.UpdatedAt.desc(), Note.Id)
    notes, meta = Paginate(query, page, min(limit, MAX_PAGE_LIMIT))
    return [BuildNoteOut(actor, note) for note in notes], meta


def GetNoteById(db: Session, actor: Actor, lookup: AssignmentLookup, note_id: str) -> NoteOut:
    note = _GetNote(db, note_id)
    if not rbac.CanViewNote(actor, note, lookup):
        raise HTTPException(status_code=403, detail="Forbidden")
    return BuildNoteOut(actor, note)


def CreateNote(db: Session, actor: Actor, lookup: AssignmentLookup, data: NoteCreate) -> NoteOut:
    target_user_id = _ResolveTarget(actor, data.UserId, lookup)
    _EnsureCategory(db, data.CategoryId, target_user_id)

    note = Note(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        CategoryId=data.CategoryId,
        Title=_CleanText(data.Title, "Title"),
        Content=_CleanText(data.Content, "Content"),
        Pinned=data.Pinned,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    return BuildNoteOut(actor, note)


def UpdateNote(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    note_id: str,
    data: NoteUpdate,
) -> NoteOut:
    changes = data.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="At least one field is required for update")

    note = _GetNote(db, note_id)
    if not rbac.CanViewNote(actor, note, lookup):
        raise HTTPException(status_code=403, detail="Forbidden")
    if not rbac.CanEditNote(actor, note, lookup):
        raise HTTPException(status_code=403, detail="User cannot modify manager-created note")

    if "Title" in changes:
        note.Title = _CleanText(changes["Title"] or "", "Title")
    if "Content" in changes:
        note.Content = _CleanText(changes["Content"] or "", "Content")
    if "CategoryId" in changes:
        _EnsureCategory(db, changes["CategoryId"], note.UserId)
        note.CategoryId = changes["CategoryId"]
    if changes.get("Pinned") is not None:
        note.Pinned = changes["Pinned"]

    db.add(note)
    db.commit()
    db.refresh(note)
    return BuildNoteOut(actor, note)


def DeleteNote(db: Session, actor: Actor, lookup: AssignmentLookup, note_id: str) -> None:
    note = _GetNote(db, note_id)
    if not rbac.CanViewNote(actor, note, lookup):
        raise HTTPException(status_code=403, detail="Forbidden")
    if not rbac.CanDeleteNote(actor, note, lookup):
        raise HTTPException(status_code=403, detail="User cannot delete manager-created note")
    db.delete(note)
    db.commit()
