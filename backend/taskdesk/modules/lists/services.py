from sqlalchemy.orm import Session

from taskdesk.modules.auth.utils.ownership import (
    EnsureCanModify,
    EnsureOwnerAccess,
    ResolveTargetOrRaise,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.lists.models import TodoList
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.tasks.models import Task

LOCKED_LIST_MESSAGE = "User cannot modify manager-created list"


def _CleanTitle(value: str) -> str:
    title = value.strip()
    if not title:
        raise ValueError("Title required")
    return title


def _CleanDescription(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _GetList(db: Session, list_id: str) -> TodoList:
    record = db.query(TodoList).filter(TodoList.Id == list_id).first()
    if not record:
        raise ResourceNotFoundError("List not found")
    return record


def ListTodoLists(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: str | None,
    search: str | None = None,
) -> list[TodoList]:
    target_user_id = ResolveTargetOrRaise(actor, requested_user_id, lookup)
    query = db.query(TodoList).filter(TodoList.UserId == target_user_id)
    term = (search or "").strip()
    if term:
        query = query.filter(TodoList.Title.ilike(f"%{term}%"))
    return query.order_by(TodoList.CreatedAt.asc()).all()


def CreateTodoList(db: Session, actor: Actor, lookup: AssignmentLookup, payload: dict) -> TodoList:
    target_user_id = ResolveTargetOrRaise(actor, payload.get("UserId"), lookup)
    record = TodoList(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        Title=_CleanTitle(payload["Title"]),
        Description=_CleanDescription(payload.get("Description")),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def GetTodoList(db: Session, actor: Actor, lookup: AssignmentLookup, list_id: str) -> TodoList:
    record = _GetList(db, list_id)
    EnsureOwnerAccess(actor, record.UserId, lookup)
    return record


def UpdateTodoList(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    list_id: str,
    payload: dict,
) -> TodoList:
    if not payload:
        raise ValueError("At least one field is required for update")
    record = _GetList(db, list_id)
    EnsureCanModify(actor, record, lookup, LOCKED_LIST_MESSAGE)

    if "Title" in payload:
        if payload["Title"] is None:
            raise ValueError("Title required")
        record.Title = _CleanTitle(payload["Title"])
    if "Description" in payload:
        record.Description = _CleanDescription(payload["Description"])

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def DeleteTodoList(db: Session, actor: Actor, lookup: AssignmentLookup, list_id: str) -> int:
    """Delete a list and its tasks. Returns the number of deleted tasks."""
    record = _GetList(db, list_id)
    EnsureCanModify(actor, record, lookup, LOCKED_LIST_MESSAGE)

    task_ids = [row.Id for row in db.query(Task.Id).filter(Task.ListId == record.Id).all()]
    if task_ids:
        for model in (Reminder, CalendarEvent):
            db.query(model).filter(model.TaskId.in_(task_ids)).update(
                {model.TaskId: None}, synchronize_session=False
            )
        db.query(Task).filter(Task.Id.in_(task_ids)).delete(synchronize_session=False)
    db.delete(record)
    db.commit()
    return len(task_ids)
