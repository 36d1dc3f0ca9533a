from datetime import datetime, timedelta, timezone

import pytest

from taskdesk.modules.auth.deps import SqlAssignmentLookup
from taskdesk.modules.auth.utils.ownership import ResourceAccessError, ResourceNotFoundError
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.events.services import (
    EVENT_ORDER_MESSAGE,
    LOCKED_EVENT_MESSAGE,
    CreateEvent,
    DeleteEvent,
    GetEvent,
    ListEvents,
    UpdateEvent,
)
from taskdesk.modules.lists.services import CreateTodoList
from taskdesk.modules.tasks.services import CreateTask, DeleteTask

MONDAY = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _window(start: datetime, hours: int = 1) -> dict:
    return {"StartsAt": start, "EndsAt": start + timedelta(hours=hours)}


@pytest.fixture()
def task(db, team):
    lookup = SqlAssignmentLookup(db)
    todo_list = CreateTodoList(db, team["managed"], lookup, {"Title": "Inbox"})
    return CreateTask(db, team["managed"], lookup, {"ListId": todo_list.Id, "Title": "Prepare deck"})


def test_event_end_must_follow_start(db, team):
    lookup = SqlAssignmentLookup(db)
    with pytest.raises(ValueError) as exc_info:
        CreateEvent(db, team["managed"], lookup, {"Title": "Zero", "StartsAt": MONDAY, "EndsAt": MONDAY})
    assert str(exc_info.value) == EVENT_ORDER_MESSAGE

    naive_start = datetime(2026, 3, 2, 10, 0)
    mixed = {"Title": "Mixed", "StartsAt": naive_start, "EndsAt": MONDAY + timedelta(hours=2)}
    event = CreateEvent(db, team["managed"], lookup, mixed)
    assert event.CreatedByUserId == "u1"

    with pytest.raises(ValueError):
        UpdateEvent(db, team["managed"], lookup, event.Id, {"EndsAt": MONDAY})


def test_event_task_must_belong_to_target(db, team, task):
    lookup = SqlAssignmentLookup(db)
    with pytest.raises(ValueError):
        CreateEvent(db, team["stranger"], lookup, {"TaskId": task.Id, "Title": "Borrowed", **_window(MONDAY)})
    with pytest.raises(ResourceAccessError):
        CreateEvent(db, team["stranger"], lookup, {"UserId": "u1", "Title": "Intrude", **_window(MONDAY)})

    event = CreateEvent(
        db, team["manager"], lookup, {"UserId": "u1", "TaskId": task.Id, "Title": " Review ", **_window(MONDAY)}
    )
    assert event.Title == "Review"
    assert event.UserId == "u1"
    assert event.TaskId == task.Id


def test_manager_created_event_is_locked_for_owner(db, team):
    lookup = SqlAssignmentLookup(db)
    event = CreateEvent(db, team["manager"], lookup, {"UserId": "u1", "Title": "1:1", **_window(MONDAY)})

    assert GetEvent(db, team["managed"], lookup, event.Id).Id == event.Id
    with pytest.raises(ResourceAccessError) as exc_info:
        UpdateEvent(db, team["managed"], lookup, event.Id, {"Location": "Room 4"})
    assert str(exc_info.value) == LOCKED_EVENT_MESSAGE
    with pytest.raises(ResourceAccessError):
        DeleteEvent(db, team["managed"], lookup, event.Id)
    with pytest.raises(ResourceAccessError):
        GetEvent(db, team["stranger"], lookup, event.Id)

    moved = UpdateEvent(db, team["manager"], lookup, event.Id, {"Location": " Room 4 "})
    assert moved.Location == "Room 4"
    renamed = UpdateEvent(db, team["admin"], lookup, event.Id, {"Title": "Check-in"})
    assert renamed.Title == "Check-in"

    DeleteEvent(db, team["manager"], lookup, event.Id)
    with pytest.raises(ResourceNotFoundError):
        GetEvent(db, team["manager"], lookup, event.Id)


def test_event_update_rejects_empty_or_null_fields(db, team):
    lookup = SqlAssignmentLookup(db)
    event = CreateEvent(db, team["managed"], lookup, {"Title": "Gym", **_window(MONDAY)})
    with pytest.raises(ValueError):
        UpdateEvent(db, team["managed"], lookup, event.Id, {})
    with pytest.raises(ValueError):
        UpdateEvent(db, team["managed"], lookup, event.Id, {"StartsAt": None})
    with pytest.raises(ValueError):
        UpdateEvent(db, team["managed"], lookup, event.Id, {"Title": "   "})

    changes = {"Description": "  ", "EndsAt": MONDAY + timedelta(hours=3)}
    updated = UpdateEvent(db, team["managed"], lookup, event.Id, changes)
    assert updated.Description is None


def test_list_events_filters_window_and_orders_by_start(db, team, task):
    lookup = SqlAssignmentLookup(db)
    late = CreateEvent(db, team["managed"], lookup, {"Title": "Dentist", **_window(MONDAY + timedelta(days=2))})
    early = CreateEvent(db, team["managed"], lookup, {"Title": "Standup", "Location": "Dock", **_window(MONDAY)})
    later = _window(MONDAY + timedelta(days=9))
    CreateEvent(db, team["managed"], lookup, {"Title": "Deck", "TaskId": task.Id, **later})
    CreateEvent(db, team["stranger"], lookup, {"Title": "Elsewhere", **_window(MONDAY)})

    records, meta = ListEvents(db, team["managed"], lookup, None, {}, 1, 40)
    assert [record.Title for record in records] == ["Standup", "Dentist", "Deck"]
    assert meta.Total == 3

    week = {"StartsFrom": MONDAY, "StartsTo": MONDAY + timedelta(days=7)}
    records, _ = ListEvents(db, team["manager"], lookup, "u1", week, 1, 40)
    assert [record.Id for record in records] == [early.Id, late.Id]

    records, _ = ListEvents(db, team["managed"], lookup, None, {"Q": "dock"}, 1, 40)
    assert [record.Id for record in records] == [early.Id]
    records, _ = ListEvents(db, team["managed"], lookup, None, {"TaskId": task.Id}, 1, 40)
    assert [record.Title for record in records] == ["Deck"]

    records, meta = ListEvents(db, team["managed"], lookup, None, {}, 2, 2)
    assert [record.Title for record in records] == ["Deck"]
    assert meta.TotalPages == 2

    with pytest.raises(ValueError):
        ListEvents(db, team["managed"], lookup, None, {"StartsFrom": week["StartsTo"], "StartsTo": MONDAY}, 1, 40)
    with pytest.raises(ResourceAccessError):
        ListEvents(db, team["stranger"], lookup, "u1", {}, 1, 40)


def test_deleting_task_keeps_linked_event(db, team, task):
    lookup = SqlAssignmentLookup(db)
    event = CreateEvent(db, team["managed"], lookup, {"TaskId": task.Id, "Title": "Deck", **_window(MONDAY)})
    DeleteTask(db, team["managed"], lookup, task.Id)

    record = db.query(CalendarEvent).filter(CalendarEvent.Id == event.Id).one()
    assert record.TaskId is None
