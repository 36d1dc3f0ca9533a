import json
from datetime import datetime, timedelta, timezone

import pytest

from taskdesk.modules.admin.models import AdminAuditLog
from taskdesk.modules.admin.services import (
    AdminServiceError,
    AssignUserToManager,
    DeleteUser,
    ListUsers,
    UpdateUser,
)
from taskdesk.modules.auth.deps import NowUtc, SqlAssignmentLookup
from taskdesk.modules.auth.models import RefreshToken, User
from taskdesk.modules.auth.roles import UserRole
from taskdesk.modules.auth.service import HashRefreshToken
from taskdesk.modules.categories.models import Category
from taskdesk.modules.categories.services import CreateCategory
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.events.services import CreateEvent
from taskdesk.modules.lists.models import TodoList
from taskdesk.modules.lists.services import CreateTodoList
from taskdesk.modules.notes.models import Note
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.reminders.services import CreateReminder
from taskdesk.modules.tasks.models import Task
from taskdesk.modules.tasks.services import CreateTask


def _issue_refresh_token(db, user_id):
    db.add(RefreshToken(UserId=user_id, TokenHash=HashRefreshToken("token"), ExpiresAt=NowUtc()))
    db.commit()


def _audit_actions(db, target_user_id):
    rows = db.query(AdminAuditLog).filter(AdminAuditLog.TargetUserId == target_user_id).all()
    return [row.Action for row in rows]


def test_admin_list_users_reports_team_size_and_manager_name(db, team, make_user):
    make_user("u3", manager_id="m1")
    views = {view.User.Id: view for view in ListUsers(db)}
    assert views["m1"].TeamSize == 2
    assert views["m2"].TeamSize == 0
    assert views["u1"].ManagerName == "M1"

    managers = ListUsers(db, UserRole.Manager)
    assert sorted(view.User.Id for view in managers) == ["m1", "m2"]


def test_admin_assign_user_to_manager_validates_target_and_manager(db, team, make_user):
    make_user("m3", role="manager", is_active=False)
    with pytest.raises(AdminServiceError) as exc_info:
        AssignUserToManager(db, "a1", "m2", "m1")
    assert exc_info.value.status_code == 400
    with pytest.raises(AdminServiceError):
        AssignUserToManager(db, "a1", "u2", "u2")
    with pytest.raises(AdminServiceError):
        AssignUserToManager(db, "a1", "u2", "m3")
    with pytest.raises(AdminServiceError) as exc_info:
        AssignUserToManager(db, "m1", "u2", "m1")
    assert exc_info.value.status_code == 403

    AssignUserToManager(db, "a1", "u2", "m2")
    db.commit()
    assert SqlAssignmentLookup(db).IsManagerOfUser("m2", "u2")
    assert "assign_user_to_manager" in _audit_actions(db, "u2")


def test_admin_update_user_assigns_and_unassigns_manager(db, team):
    view = UpdateUser(db, team["admin"], "u2", {"ManagerId": "m1"})
    assert view.User.ManagerId == "m1"
    assert view.ManagerName == "M1"

    view = UpdateUser(db, team["admin"], "u2", {"ManagerId": None})
    assert view.User.ManagerId is None
    assert _audit_actions(db, "u2").count("update_user") == 2


def test_admin_cannot_demote_or_deactivate_self(db, team):
    with pytest.raises(AdminServiceError) as exc_info:
        UpdateUser(db, team["admin"], "a1", {"Role": "user"})
    assert exc_info.value.status_code == 400
    with pytest.raises(AdminServiceError):
        UpdateUser(db, team["admin"], "a1", {"IsActive": False})
    with pytest.raises(AdminServiceError) as exc_info:
        UpdateUser(db, team["admin"], "missing", {"IsActive": False})
    assert exc_info.value.status_code == 404


def test_admin_demoting_manager_removes_created_records_and_team(db, team):
    lookup = SqlAssignmentLookup(db)
    own_list = CreateTodoList(db, team["managed"], lookup, {"Title": "Inbox"})
    assigned = CreateTask(db, team["manager"], lookup, {"UserId": "u1", "ListId": own_list.Id, "Title": "Assigned"})
    starts_at = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    window = {"StartsAt": starts_at, "EndsAt": starts_at + timedelta(hours=1)}
    review = CreateEvent(db, team["manager"], lookup, {"UserId": "u1", "Title": "Review", **window})
    own_event = CreateEvent(db, team["managed"], lookup, {"TaskId": assigned.Id, "Title": "Prep", **window})
    kept = CreateTask(db, team["managed"], lookup, {"ListId": own_list.Id, "Title": "Mine"})
    reminder = CreateReminder(
        db, team["managed"], lookup, {"TaskId": kept.Id, "EventId": review.Id, "Message": "Prep", "RemindAt": starts_at}
    )
    CreateCategory(db, team["manager"], lookup, {"UserId": "u1", "Name": "Assigned"})
    db.add(Note(UserId="u1", CreatedByUserId="m1", Title="Brief", Content="..."))
    db.commit()
    _issue_refresh_token(db, "m1")

    view = UpdateUser(db, team["admin"], "m1", {"Role": "user"})

    assert view.User.Role == "user"
    assert [task.Id for task in db.query(Task).all()] == [kept.Id]
    assert db.query(Note).count() == 0
    assert db.query(Category).count() == 0
    remaining = db.query(CalendarEvent).one()
    assert remaining.Id == own_event.Id
    assert remaining.TaskId is None
    unlinked = db.query(Reminder).one()
    assert unlinked.Id == reminder.Id
    assert unlinked.EventId is None
    assert db.query(User).filter(User.Id == "u1").one().ManagerId is None
    assert db.query(RefreshToken).filter(RefreshToken.UserId == "m1").one().RevokedAt is not None

    removal = db.query(AdminAuditLog).filter(AdminAuditLog.Action == "remove_manager_role").one()
    details = json.loads(removal.Details)
    assert details["Deleted"] == {"Reminders": 0, "Events": 1, "Tasks": 1, "Notes": 1, "Categories": 1}
    assert details["UnassignedUsersCount"] == 1


def test_admin_deactivation_revokes_sessions(db, team):
    _issue_refresh_token(db, "u2")
    view = UpdateUser(db, team["admin"], "u2", {"IsActive": False})
    assert view.User.IsActive is False
    assert db.query(RefreshToken).filter(RefreshToken.UserId == "u2").one().RevokedAt is not None


def test_admin_promoting_user_clears_manager(db, team):
    view = UpdateUser(db, team["admin"], "u1", {"Role": "manager"})
    assert view.User.Role == "manager"
    assert view.User.ManagerId is None


def test_admin_delete_user_removes_owned_records(db, team):
    lookup = SqlAssignmentLookup(db)
    own_list = CreateTodoList(db, team["managed"], lookup, {"Title": "Inbox"})
    CreateTask(db, team["managed"], lookup, {"ListId": own_list.Id, "Title": "Mine"})
    starts_at = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
    window = {"StartsAt": starts_at, "EndsAt": starts_at + timedelta(hours=1)}
    CreateEvent(db, team["manager"], lookup, {"UserId": "u1", "Title": "Sync", **window})

    with pytest.raises(AdminServiceError) as exc_info:
        DeleteUser(db, team["admin"], "a1")
    assert exc_info.value.status_code == 400
    with pytest.raises(AdminServiceError) as exc_info:
        DeleteUser(db, team["admin"], "missing")
    assert exc_info.value.status_code == 404

    snapshot = DeleteUser(db, team["admin"], "u1")
    assert snapshot == {"Id": "u1", "Email": "u1@example.com", "Role": "user"}
    assert db.query(User).filter(User.Id == "u1").first() is None
    assert db.query(TodoList).count() == 0
    assert db.query(Task).count() == 0
    assert db.query(CalendarEvent).count() == 0
    assert _audit_actions(db, "u1") == ["delete_user"]
