from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from taskdesk.modules.auth.deps import AsUtc
from taskdesk.modules.auth.utils.ownership import (
    EnsureCanModify,
    EnsureOwnerAccess,
    ResolveTargetOrRaise,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup
from taskdesk.modules.core.schemas import PageMeta, Paginate
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.tasks.models import Task

DEFAULT_PAGE_LIMIT = 40
MAX_PAGE_LIMIT = 500
LOCKED_EVENT_MESSAGE = "User cannot modify manager-created event"
EVENT_ORDER_MESSAGE = "Event end time must be after start time"


def _CleanOptional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


def _EnsureOrder(starts_at: datetime, ends_at: datetime) -> None:
    if AsUtc(ends_at) <= AsUtc(starts_at):
        raise ValueError(EVENT_ORDER_MESSAGE)


def _EnsureTaskOwnedBy(db: Session, task_id: str, user_id: str, message: str) -> None:
    exists = db.query(Task.Id).filter(Task.Id == task_id, Task.UserId == user_id).first()
    if not exists:
        raise ValueError(message)


def _GetEvent(db: Session, event_id: str) -> CalendarEvent:
    record = db.query(CalendarEvent).filter(CalendarEvent.Id == event_id).first()
    if not record:
        raise ResourceNotFoundError("Event not found")
    return record


def ListEvents(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: str | None,
    filters: dict,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> tuple[list[CalendarEvent], PageMeta]:
    """Events of the target user that start inside the optional window, earliest first."""
    target_user_id = ResolveTargetOrRaise(actor, requested_user_id, lookup)
    starts_from = AsUtc(filters.get("StartsFrom"))
    starts_to = AsUtc(filters.get("StartsTo"))
    if starts_from and starts_to and starts_from > starts_to:
        raise ValueError("StartsFrom must be before StartsTo")

    query = db.query(CalendarEvent).filter(CalendarEvent.UserId == target_user_id)
    if filters.get("TaskId"):
        query = query.filter(CalendarEvent.TaskId == filters["TaskId"])
    if starts_from:
        query = query.filter(CalendarEvent.StartsAt >= starts_from)
    if starts_to:
        query = query.filter(CalendarEvent.StartsAt <= starts_to)
    term = (filters.get("Q") or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(
            or_(
                CalendarEvent.Title.ilike(pattern),
                CalendarEvent.Description.ilike(pattern),
                CalendarEvent.Location.ilike(pattern),
            )
        )
    query = query.order_by(CalendarEvent.StartsAt.asc(), CalendarEvent.Id)
    return Paginate(query, page, min(limit, MAX_PAGE_LIMIT))


def CreateEvent(db: Session, actor: Actor, lookup: AssignmentLookup, payload: dict) -> CalendarEvent:
    target_user_id = ResolveTargetOrRaise(actor, payload.get("UserId"), lookup)
    title = payload["Title"].strip()
    if not title:
        raise ValueError("Title required")
    _EnsureOrder(payload["StartsAt"], payload["EndsAt"])
    if payload.get("TaskId"):
        _EnsureTaskOwnedBy(db, payload["TaskId"], target_user_id, "Task does not exist for selected user")

    record = CalendarEvent(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        TaskId=payload.get("TaskId"),
        Title=title,
        Description=_CleanOptional(payload.get("Description")),
        StartsAt=AsUtc(payload["StartsAt"]),
        EndsAt=AsUtc(payload["EndsAt"]),
        Location=_CleanOptional(payload.get("Location")),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def GetEvent(db: Session, actor: Actor, lookup: AssignmentLookup, event_id: str) -> CalendarEvent:
    record = _GetEvent(db, event_id)
    EnsureOwnerAccess(actor, record.UserId, lookup)
    return record


def UpdateEvent(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    event_id: str,
    payload: dict,
) -> CalendarEvent:
    if not payload:
        raise ValueError("At least one field is required for update")
    record = _GetEvent(db, event_id)
    EnsureCanModify(actor, record, lookup, LOCKED_EVENT_MESSAGE)

    for field in ("Title", "StartsAt", "EndsAt"):
        if field in payload and payload[field] is None:
            raise ValueError(f"{field} cannot be null")
    starts_at = payload.get("StartsAt") or record.StartsAt
    ends_at = payload.get("EndsAt") or record.EndsAt
    _EnsureOrder(starts_at, ends_at)

    if "TaskId" in payload:
        if payload["TaskId"]:
            _EnsureTaskOwnedBy(db, payload["TaskId"], record.UserId, "Task does not exist for event owner")
        record.TaskId = payload["TaskId"]
    if "Title" in payload:
        title = payload["Title"].strip()
        if not title:
            raise ValueError("Title required")
        record.Title = title
    if "Description" in payload:
        record.Description = _CleanOptional(payload["Description"])
    if "Location" in payload:
        record.Location = _CleanOptional(payload["Location"])
    record.StartsAt = AsUtc(starts_at)
    record.EndsAt = AsUtc(ends_at)

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def DeleteEvent(db: Session, actor: Actor, lookup: AssignmentLookup, event_id: str) -> None:
    record = _GetEvent(db, event_id)
    EnsureCanModify(actor, record, lookup, LOCKED_EVENT_MESSAGE)
    db.query(Reminder).filter(Reminder.EventId == record.Id).update(
        {Reminder.EventId: None}, synchronize_session=False
    )
    db.delete(record)
    db.commit()
