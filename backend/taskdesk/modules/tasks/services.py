from __future__ import annotations

from enum import Enum

from sqlalchemy.orm import Session

from taskdesk.modules.auth.deps import NowUtc
from taskdesk.modules.auth.utils.ownership import (
    EnsureOwnerAccess,
    ResolveTargetOrRaise,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup
from taskdesk.modules.categories.models import Category
from taskdesk.modules.core.schemas import PageMeta, Paginate
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.lists.models import TodoList
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.tasks.models import Task
from taskdesk.modules.tasks.utils.rbac import (
    EnsureCanDeleteTask,
    EnsureCanUpdateTask,
    IsStatusOnlyUpdate,
)

DEFAULT_PAGE_LIMIT = 30
MAX_PAGE_LIMIT = 500

_UPDATABLE_FIELDS = (
    "ListId",
    "CategoryId",
    "Title",
    "Description",
    "Priority",
    "Status",
    "DueDate",
    "CompletedAt",
    "EstimatedMinutes",
)
_REQUIRED_FIELDS = {"ListId", "Title", "Priority", "Status", "EstimatedMinutes"}


def _EnumValue(value):
    return value.value if isinstance(value, Enum) else value


def _CleanDescription(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _EnsureListOwnedBy(db: Session, list_id: str, user_id: str, message: str) -> None:
    exists = db.query(TodoList.Id).filter(TodoList.Id == list_id, TodoList.UserId == user_id).first()
    if not exists:
        raise ValueError(message)


def _EnsureCategoryOwnedBy(db: Session, category_id: str, user_id: str, message: str) -> None:
    exists = (
        db.query(Category.Id)
        .filter(Category.Id == category_id, Category.UserId == user_id)
        .first()
    )
    if not exists:
        raise ValueError(message)


def _GetTask(db: Session, task_id: str) -> Task:
    record = db.query(Task).filter(Task.Id == task_id).first()
    if not record:
        raise ResourceNotFoundError("Task not found")
    return record


def ListTasks(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: str | None,
    filters: dict,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> tuple[list[Task], PageMeta]:
    target_user_id = ResolveTargetOrRaise(actor, requested_user_id, lookup)
    query = db.query(Task).filter(Task.UserId == target_user_id)
    if filters.get("ListId"):
        query = query.filter(Task.ListId == filters["ListId"])
    if filters.get("Status"):
        query = query.filter(Task.Status == _EnumValue(filters["Status"]))
    if filters.get("Priority"):
        query = query.filter(Task.Priority == _EnumValue(filters["Priority"]))
    query = query.order_by(Task.CreatedAt.desc(), Task.Id)
    return Paginate(query, page, min(limit, MAX_PAGE_LIMIT))


def CreateTask(db: Session, actor: Actor, lookup: AssignmentLookup, payload: dict) -> Task:
    target_user_id = ResolveTargetOrRaise(actor, payload.get("UserId"), lookup)
    title = payload["Title"].strip()
    if not title:
        raise ValueError("Title required")

    _EnsureListOwnedBy(db, payload["ListId"], target_user_id, "List does not exist for selected user")
    if payload.get("CategoryId"):
        _EnsureCategoryOwnedBy(
            db, payload["CategoryId"], target_user_id, "Category does not exist for selected user"
        )

    record = Task(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        ListId=payload["ListId"],
        CategoryId=payload.get("CategoryId"),
        Title=title,
        Description=_CleanDescription(payload.get("Description")),
        Priority=_EnumValue(payload.get("Priority") or "medium"),
        Status=_EnumValue(payload.get("Status") or "not_started"),
        DueDate=payload.get("DueDate"),
        CompletedAt=payload.get("CompletedAt"),
        EstimatedMinutes=payload.get("EstimatedMinutes") or 30,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _ApplyStatusUpdate(record: Task, payload: dict) -> None:
    status = _EnumValue(payload["Status"])
    record.Status = status
    if "CompletedAt" in payload:
        record.CompletedAt = payload["CompletedAt"]
    elif status == "done":
        record.CompletedAt = NowUtc()
    else:
        record.CompletedAt = None


def UpdateTask(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    task_id: str,
    payload: dict,
) -> Task:
    if not payload:
        raise ValueError("At least one field is required for update")
    record = _GetTask(db, task_id)
    EnsureCanUpdateTask(actor, record, payload, lookup)

    if IsStatusOnlyUpdate(payload) and payload.get("Status") is not None:
        _ApplyStatusUpdate(record, payload)
    else:
        for field in _REQUIRED_FIELDS:
            if field in payload and payload[field] is None:
                raise ValueError(f"{field} cannot be null")
        if payload.get("ListId"):
            _EnsureListOwnedBy(db, payload["ListId"], record.UserId, "List does not exist for task owner")
        if payload.get("CategoryId"):
            _EnsureCategoryOwnedBy(
                db, payload["CategoryId"], record.UserId, "Category does not exist for task owner"
            )
        for field in _UPDATABLE_FIELDS:
            if field not in payload:
                continue
            value = _EnumValue(payload[field])
            if field == "Title":
                value = value.strip()
                if not value:
                    raise ValueError("Title required")
            elif field == "Description":
                value = _CleanDescription(value)
            setattr(record, field, value)

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def DeleteTask(db: Session, actor: Actor, lookup: AssignmentLookup, task_id: str) -> None:
    record = _GetTask(db, task_id)
    EnsureCanDeleteTask(actor, record, lookup)
    for model in (Reminder, CalendarEvent):
        db.query(model).filter(model.TaskId == record.Id).update({model.TaskId: None}, synchronize_session=False)
    db.delete(record)
    db.commit()


def GetTask(db: Session, actor: Actor, lookup: AssignmentLookup, task_id: str) -> Task:
    record = _GetTask(db, task_id)
    EnsureOwnerAccess(actor, record.UserId, lookup)
    return record
