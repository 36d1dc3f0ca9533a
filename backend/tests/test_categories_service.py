import pytest

from taskdesk.modules.auth.deps import SqlAssignmentLookup
from taskdesk.modules.auth.utils.ownership import ResourceAccessError, ResourceConflictError
from taskdesk.modules.categories.models import DEFAULT_CATEGORY_COLOR
from taskdesk.modules.categories.services import (
    LOCKED_CATEGORY_MESSAGE,
    CreateCategory,
    DeleteCategory,
    ListCategories,
    UpdateCategory,
)
from taskdesk.modules.notes.models import Note


def test_categories_are_ordered_by_name_with_default_color(db, team):
    lookup = SqlAssignmentLookup(db)
    CreateCategory(db, team["managed"], lookup, {"Name": "Work"})
    CreateCategory(db, team["managed"], lookup, {"Name": "Errands", "Color": "#112233"})

    categories = ListCategories(db, team["manager"], lookup, "u1")
    assert [item.Name for item in categories] == ["Errands", "Work"]
    assert categories[1].Color == DEFAULT_CATEGORY_COLOR


def test_categories_duplicate_name_for_same_owner_conflicts(db, team):
    lookup = SqlAssignmentLookup(db)
    CreateCategory(db, team["managed"], lookup, {"Name": "Work"})
    with pytest.raises(ResourceConflictError):
        CreateCategory(db, team["manager"], lookup, {"UserId": "u1", "Name": " Work "})

    other = CreateCategory(db, team["stranger"], lookup, {"Name": "Work"})
    assert other.UserId == "u2"


def test_categories_rename_into_existing_name_conflicts(db, team):
    lookup = SqlAssignmentLookup(db)
    CreateCategory(db, team["managed"], lookup, {"Name": "Work"})
    home = CreateCategory(db, team["managed"], lookup, {"Name": "Home"})
    with pytest.raises(ResourceConflictError):
        UpdateCategory(db, team["managed"], lookup, home.Id, {"Name": "Work"})


def test_categories_locked_owner_gets_category_message(db, team):
    lookup = SqlAssignmentLookup(db)
    category = CreateCategory(db, team["manager"], lookup, {"UserId": "u1", "Name": "Assigned"})
    with pytest.raises(ResourceAccessError) as exc_info:
        UpdateCategory(db, team["managed"], lookup, category.Id, {"Color": "#000000"})
    assert str(exc_info.value) == LOCKED_CATEGORY_MESSAGE


def test_categories_delete_unlinks_notes(db, team):
    lookup = SqlAssignmentLookup(db)
    category = CreateCategory(db, team["managed"], lookup, {"Name": "Ideas"})
    note = Note(UserId="u1", CreatedByUserId="u1", CategoryId=category.Id, Title="t", Content="c")
    db.add(note)
    db.commit()
    note_id = note.Id

    DeleteCategory(db, team["managed"], lookup, category.Id)
    db.expire_all()
    assert db.query(Note).filter(Note.Id == note_id).one().CategoryId is None
