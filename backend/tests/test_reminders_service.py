from datetime import datetime, timedelta, timezone

import pytest

from taskdesk.modules.auth.deps import SqlAssignmentLookup
from taskdesk.modules.auth.utils.ownership import ResourceAccessError
from taskdesk.modules.events.services import CreateEvent, DeleteEvent
from taskdesk.modules.lists.services import CreateTodoList
from taskdesk.modules.reminders.services import (
    LOCKED_REMINDER_MESSAGE,
    REMINDER_TARGET_MESSAGE,
    CreateReminder,
    DispatchDueReminders,
    ListReminders,
    NormalizeMessage,
    UpdateReminder,
    ValidateMessage,
)
from taskdesk.modules.tasks.services import CreateTask


@pytest.fixture()
def task(db, team):
    lookup = SqlAssignmentLookup(db)
    todo_list = CreateTodoList(db, team["managed"], lookup, {"Title": "Inbox"})
    return CreateTask(db, team["managed"], lookup, {"ListId": todo_list.Id, "Title": "Call back"})


def test_reminder_message_normalization():
    assert NormalizeMessage("  call   the\tbank ") == "call the bank"
    assert NormalizeMessage(None) == ""
    with pytest.raises(ValueError):
        ValidateMessage("   ")


def test_reminders_require_task_of_target(db, team, task):
    lookup = SqlAssignmentLookup(db)
    when = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    with pytest.raises(ValueError):
        CreateReminder(db, team["stranger"], lookup, {"TaskId": task.Id, "Message": "x", "RemindAt": when})

    reminder = CreateReminder(
        db, team["manager"], lookup, {"UserId": "u1", "TaskId": task.Id, "Message": " ping ", "RemindAt": when}
    )
    assert reminder.Message == "ping"
    assert reminder.CreatedByUserId == "m1"
    assert reminder.IsSent is False


def test_reminders_locked_owner_and_resend_on_reschedule(db, team, task):
    lookup = SqlAssignmentLookup(db)
    when = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    reminder = CreateReminder(
        db, team["manager"], lookup, {"UserId": "u1", "TaskId": task.Id, "Message": "ping", "RemindAt": when}
    )
    with pytest.raises(ResourceAccessError) as exc_info:
        UpdateReminder(db, team["managed"], lookup, reminder.Id, {"Message": "mine"})
    assert str(exc_info.value) == LOCKED_REMINDER_MESSAGE

    sent = UpdateReminder(db, team["manager"], lookup, reminder.Id, {"IsSent": True})
    assert sent.IsSent is True
    assert sent.SentAt is not None

    moved = UpdateReminder(db, team["manager"], lookup, reminder.Id, {"RemindAt": when + timedelta(days=1)})
    assert moved.IsSent is False
    assert moved.SentAt is None


def test_reminders_list_window_filters(db, team, task):
    lookup = SqlAssignmentLookup(db)
    start = datetime(2026, 5, 1, 9, 0, tzinfo=timezone.utc)
    for offset in range(3):
        CreateReminder(
            db,
            team["managed"],
            lookup,
            {"TaskId": task.Id, "Message": f"r{offset}", "RemindAt": start + timedelta(days=offset)},
        )

    items, meta = ListReminders(
        db,
        team["managed"],
        lookup,
        None,
        {"RemindFrom": start + timedelta(hours=1), "RemindTo": start + timedelta(days=2)},
    )
    assert [item.Message for item in items] == ["r1", "r2"]
    assert meta.Total == 2

    with pytest.raises(ValueError):
        ListReminders(db, team["managed"], lookup, None, {"RemindFrom": start, "RemindTo": start - timedelta(days=1)})


def test_dispatch_marks_only_own_due_reminders(db, team, task):
    lookup = SqlAssignmentLookup(db)
    now = datetime.now(tz=timezone.utc)
    due = CreateReminder(
        db, team["managed"], lookup, {"TaskId": task.Id, "Message": "due", "RemindAt": now - timedelta(minutes=5)}
    )
    CreateReminder(
        db, team["managed"], lookup, {"TaskId": task.Id, "Message": "later", "RemindAt": now + timedelta(days=1)}
    )

    assert DispatchDueReminders(db, team["manager"]) == []

    dispatched = DispatchDueReminders(db, team["managed"])
    assert [item.Id for item in dispatched] == [due.Id]
    assert dispatched[0].IsSent is True
    assert DispatchDueReminders(db, team["managed"]) == []


@pytest.fixture()
def event(db, team):
    lookup = SqlAssignmentLookup(db)
    start = datetime(2026, 5, 4, 14, 0, tzinfo=timezone.utc)
    return CreateEvent(
        db, team["managed"], lookup, {"Title": "Dentist", "StartsAt": start, "EndsAt": start + timedelta(hours=1)}
    )


def test_reminder_needs_task_or_event(db, team, task, event):
    lookup = SqlAssignmentLookup(db)
    when = datetime(2026, 5, 4, 13, 0, tzinfo=timezone.utc)
    with pytest.raises(ValueError) as exc_info:
        CreateReminder(db, team["managed"], lookup, {"Message": "leave", "RemindAt": when})
    assert str(exc_info.value) == REMINDER_TARGET_MESSAGE

    with pytest.raises(ValueError):
        CreateReminder(db, team["stranger"], lookup, {"EventId": event.Id, "Message": "x", "RemindAt": when})

    payload = {"UserId": "u1", "EventId": event.Id, "Message": "leave", "RemindAt": when}
    reminder = CreateReminder(db, team["manager"], lookup, payload)
    assert reminder.EventId == event.Id
    assert reminder.TaskId is None

    items, _ = ListReminders(db, team["managed"], lookup, None, {"EventId": event.Id})
    assert [item.Id for item in items] == [reminder.Id]

    with pytest.raises(ValueError) as exc_info:
        UpdateReminder(db, team["manager"], lookup, reminder.Id, {"EventId": None})
    assert str(exc_info.value) == REMINDER_TARGET_MESSAGE

    moved = UpdateReminder(db, team["manager"], lookup, reminder.Id, {"TaskId": task.Id, "EventId": None})
    assert moved.TaskId == task.Id
    assert moved.EventId is None


def test_deleting_event_keeps_reminder_unlinked(db, team, task, event):
    lookup = SqlAssignmentLookup(db)
    when = datetime(2026, 5, 4, 13, 0, tzinfo=timezone.utc)
    reminder = CreateReminder(
        db, team["managed"], lookup, {"TaskId": task.Id, "EventId": event.Id, "Message": "leave", "RemindAt": when}
    )

    DeleteEvent(db, team["managed"], lookup, event.Id)

    items, _ = ListReminders(db, team["managed"], lookup, None, {})
    assert [item.Id for item in items] == [reminder.Id]
    assert items[0].EventId is None
    assert items[0].TaskId == task.Id
