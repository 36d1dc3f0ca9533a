from datetime import datetime, timedelta

import pytest
from fastapi import HTTPException

from taskdesk.modules.auth.deps import SqlAssignmentLookup
from taskdesk.modules.notes.models import Note
from taskdesk.modules.notes.schemas import NoteCreate, NoteUpdate
from taskdesk.modules.notes.services.notes_service import (
    CreateNote,
    DeleteNote,
    GetNoteById,
    GetNotes,
    UpdateNote,
)


def test_notes_manager_note_is_locked_for_owner(db, team):
    lookup = SqlAssignmentLookup(db)
    note = CreateNote(db, team["manager"], lookup, NoteCreate(UserId="u1", Title="Brief", Content="Read me"))
    assert note.IsLocked is False

    seen = GetNoteById(db, team["managed"], lookup, note.Id)
    assert seen.IsLocked is True

    with pytest.raises(HTTPException) as exc_info:
        UpdateNote(db, team["managed"], lookup, note.Id, NoteUpdate(Title="Mine"))
    assert exc_info.value.status_code == 403
    assert exc_info.value.detail == "User cannot modify manager-created note"

    with pytest.raises(HTTPException) as exc_info:
        DeleteNote(db, team["managed"], lookup, note.Id)
    assert exc_info.value.status_code == 403


def test_notes_stranger_gets_forbidden_and_missing_gets_not_found(db, team):
    lookup = SqlAssignmentLookup(db)
    note = CreateNote(db, team["managed"], lookup, NoteCreate(Title="Private", Content="..."))

    with pytest.raises(HTTPException) as exc_info:
        GetNoteById(db, team["stranger"], lookup, note.Id)
    assert exc_info.value.status_code == 403

    with pytest.raises(HTTPException) as exc_info:
        GetNoteById(db, team["managed"], lookup, "missing")
    assert exc_info.value.status_code == 404

    with pytest.raises(HTTPException) as exc_info:
        CreateNote(db, team["manager"], lookup, NoteCreate(UserId="u2", Title="No", Content="No"))
    assert exc_info.value.status_code == 403


def test_notes_list_puts_pinned_first_then_recent(db, team):
    lookup = SqlAssignmentLookup(db)
    base = datetime(2026, 2, 1, 12, 0)
    for index, (title, pinned) in enumerate([("old", False), ("pinned", True), ("new", False)]):
        db.add(
            Note(
                UserId="u1",
                CreatedByUserId="u1",
                Title=title,
                Content=f"body {title}",
                Pinned=pinned,
                UpdatedAt=base + timedelta(hours=index),
            )
        )
    db.commit()

    notes, meta = GetNotes(db, team["managed"], lookup, None)
    assert [note.Title for note in notes] == ["pinned", "new", "old"]
    assert meta.Total == 3

    notes, _meta = GetNotes(db, team["manager"], lookup, "u1", search="BODY OLD")
    assert [note.Title for note in notes] == ["old"]

    notes, _meta = GetNotes(db, team["managed"], lookup, None, pinned=True)
    assert [note.Title for note in notes] == ["pinned"]


def test_notes_update_requires_a_field(db, team):
    lookup = SqlAssignmentLookup(db)
    note = CreateNote(db, team["managed"], lookup, NoteCreate(Title="Mine", Content="text"))
    with pytest.raises(HTTPException) as exc_info:
        UpdateNote(db, team["managed"], lookup, note.Id, NoteUpdate())
    assert exc_info.value.status_code == 400

    updated = UpdateNote(db, team["managed"], lookup, note.Id, NoteUpdate(Pinned=True))
    assert updated.Pinned is True
