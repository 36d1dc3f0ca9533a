from sqlalchemy.orm import Session

from taskdesk.modules.auth.deps import AsUtc, NowUtc
from taskdesk.modules.auth.utils.ownership import (
    EnsureCanModify,
    ResolveTargetOrRaise,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup
from taskdesk.modules.core.schemas import PageMeta, Paginate
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.tasks.models import Task

DEFAULT_PAGE_LIMIT = 25
MAX_PAGE_LIMIT = 500
LOCKED_REMINDER_MESSAGE = "User cannot modify manager-created reminder"
REMINDER_TARGET_MESSAGE = "Reminder must target task or event"


def NormalizeMessage(value: str | None) -> str:
    if value is None:
        return ""
    return " ".join(value.strip().split())


def ValidateMessage(value: str | None) -> str:
    normalized = NormalizeMessage(value)
    if not normalized:
        raise ValueError("Message is required")
    return normalized


def _EnsureTaskOwnedBy(db: Session, task_id: str, user_id: str, message: str) -> None:
    exists = db.query(Task.Id).filter(Task.Id == task_id, Task.UserId == user_id).first()
    if not exists:
        raise ValueError(message)


def _EnsureEventOwnedBy(db: Session, event_id: str, user_id: str, message: str) -> None:
    exists = (
        db.query(CalendarEvent.Id)
        .filter(CalendarEvent.Id == event_id, CalendarEvent.UserId == user_id)
        .first()
    )
    if not exists:
        raise ValueError(message)


def _GetReminder(db: Session, reminder_id: str) -> Reminder:
    record = db.query(Reminder).filter(Reminder.Id == reminder_id).first()
    if not record:
        raise ResourceNotFoundError("Reminder not found")
    return record


def ListReminders(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: str | None,
    filters: dict,
    page: int = 1,
    limit: int = DEFAULT_PAGE_LIMIT,
) -> tuple[list[Reminder], PageMeta]:
    target_user_id = ResolveTargetOrRaise(actor, requested_user_id, lookup)
    remind_from = AsUtc(filters.get("RemindFrom"))
    remind_to = AsUtc(filters.get("RemindTo"))
    if remind_from and remind_to and remind_from > remind_to:
        raise ValueError("RemindFrom must be before RemindTo")

    query = db.query(Reminder).filter(Reminder.UserId == target_user_id)
    if filters.get("TaskId"):
        query = query.filter(Reminder.TaskId == filters["TaskId"])
    if filters.get("EventId"):
        query = query.filter(Reminder.EventId == filters["EventId"])
    if filters.get("IsSent") is not None:
        query = query.filter(Reminder.IsSent == filters["IsSent"])
    if remind_from:
        query = query.filter(Reminder.RemindAt >= remind_from)
    if remind_to:
        query = query.filter(Reminder.RemindAt <= remind_to)
    query = query.order_by(Reminder.RemindAt.asc(), Reminder.Id)
    return Paginate(query, page, min(limit, MAX_PAGE_LIMIT))


def CreateReminder(db: Session, actor: Actor, lookup: AssignmentLookup, payload: dict) -> Reminder:
    target_user_id = ResolveTargetOrRaise(actor, payload.get("UserId"), lookup)
    message = ValidateMessage(payload.get("Message"))
    task_id = payload.get("TaskId")
    event_id = payload.get("EventId")
    if not task_id and not event_id:
        raise ValueError(REMINDER_TARGET_MESSAGE)
    if task_id:
        _EnsureTaskOwnedBy(db, task_id, target_user_id, "Task does not exist for selected user")
    if event_id:
        _EnsureEventOwnedBy(db, event_id, target_user_id, "Event does not exist for selected user")
    record = Reminder(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        TaskId=task_id,
        EventId=event_id,
        Message=message,
        RemindAt=AsUtc(payload["RemindAt"]),
        IsSent=False,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def UpdateReminder(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    reminder_id: str,
    payload: dict,
) -> Reminder:
    if not payload:
        raise ValueError("At least one field is required for update")
    record = _GetReminder(db, reminder_id)
    EnsureCanModify(actor, record, lookup, LOCKED_REMINDER_MESSAGE)

    next_task_id = payload["TaskId"] if "TaskId" in payload else record.TaskId
    next_event_id = payload["EventId"] if "EventId" in payload else record.EventId
    if not next_task_id and not next_event_id:
        raise ValueError(REMINDER_TARGET_MESSAGE)

    if "TaskId" in payload:
        if payload["TaskId"]:
            _EnsureTaskOwnedBy(db, payload["TaskId"], record.UserId, "Task does not exist for reminder owner")
        record.TaskId = payload["TaskId"]
    if "EventId" in payload:
        if payload["EventId"]:
            _EnsureEventOwnedBy(db, payload["EventId"], record.UserId, "Event does not exist for reminder owner")
        record.EventId = payload["EventId"]
    if "Message" in payload:
        record.Message = ValidateMessage(payload["Message"])
    if "RemindAt" in payload:
        if payload["RemindAt"] is None:
            raise ValueError("RemindAt cannot be null")
        record.RemindAt = AsUtc(payload["RemindAt"])
        if "IsSent" not in payload:
            record.IsSent = False
            record.SentAt = None
    if payload.get("IsSent") is not None:
        record.IsSent = payload["IsSent"]
        record.SentAt = NowUtc() if payload["IsSent"] else None

    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def DeleteReminder(db: Session, actor: Actor, lookup: AssignmentLookup, reminder_id: str) -> None:
    record = _GetReminder(db, reminder_id)
    EnsureCanModify(actor, record, lookup, LOCKED_REMINDER_MESSAGE)
    db.delete(record)
    db.commit()


def DispatchDueReminders(db: Session, actor: Actor) -> list[Reminder]:
    """Mark the actor's own due reminders as sent and return them."""
    now = NowUtc()
    due = (
        db.query(Reminder)
        .filter(
            Reminder.UserId == actor.Id,
            Reminder.IsSent.is_(False),
            Reminder.RemindAt <= now,
        )
        .order_by(Reminder.RemindAt.asc())
        .all()
    )
    for record in due:
        record.IsSent = True
        record.SentAt = now
        db.add(record)
    if due:
        db.commit()
        for record in due:
            db.refresh(record)
    return due
