import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.rbac import Actor, IsLockedForOwner
from taskdesk.modules.core.errors import RaiseResourceError, RaiseStorageError
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.reminders.schemas import (
    ReminderCreate,
    ReminderDeleteResponse,
    ReminderDispatchResponse,
    ReminderOut,
    ReminderPageResponse,
    ReminderResponse,
    ReminderUpdate,
)
from taskdesk.modules.reminders.services import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    CreateReminder,
    DeleteReminder,
    DispatchDueReminders,
    ListReminders,
    UpdateReminder,
)

router = APIRouter(prefix="/api/reminders", tags=["reminders"])
logger = logging.getLogger("reminders")


def _BuildReminderOut(actor: Actor, record: Reminder) -> ReminderOut:
    return ReminderOut.model_validate(record).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, record.UserId, record.CreatedByUserId)}
    )


@router.get("", response_model=ReminderPageResponse)
def ListReminderItems(
    user_id: str | None = Query(default=None, alias="UserId", max_length=36),
    task_id: str | None = Query(default=None, alias="TaskId", max_length=36),
    event_id: str | None = Query(default=None, alias="EventId", max_length=36),
    is_sent: bool | None = Query(default=None, alias="IsSent"),
    remind_from: datetime | None = Query(default=None, alias="RemindFrom"),
    remind_to: datetime | None = Query(default=None, alias="RemindTo"),
    page: int = Query(default=1, alias="Page", ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, alias="Limit", ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> ReminderPageResponse:
    filters = {
        "TaskId": task_id,
        "EventId": event_id,
        "IsSent": is_sent,
        "RemindFrom": remind_from,
        "RemindTo": remind_to,
    }
    try:
        records, meta = ListReminders(db, actor, lookup, user_id, filters, page, limit)
        return ReminderPageResponse(Data=[_BuildReminderOut(actor, record) for record in records], Meta=meta)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "reminders", exc)


@router.post("", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def CreateReminderItem(
    payload: ReminderCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> ReminderResponse:
    try:
        record = CreateReminder(db, actor, lookup, payload.model_dump())
        return ReminderResponse(Data=_BuildReminderOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "reminders", exc)


@router.post("/dispatch", response_model=ReminderDispatchResponse)
def DispatchReminderItems(
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
) -> ReminderDispatchResponse:
    try:
        records = DispatchDueReminders(db, actor)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "reminders", exc)
    if records:
        logger.info("reminders dispatched", extra={"user_id": actor.Id, "count": len(records)})
    return ReminderDispatchResponse(Data=[_BuildReminderOut(actor, record) for record in records])


@router.patch("/{reminder_id}", response_model=ReminderResponse)
def UpdateReminderItem(
    reminder_id: str,
    payload: ReminderUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> ReminderResponse:
    try:
        record = UpdateReminder(db, actor, lookup, reminder_id, payload.model_dump(exclude_unset=True))
        return ReminderResponse(Data=_BuildReminderOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "reminders", exc)


@router.delete("/{reminder_id}", response_model=ReminderDeleteResponse)
def DeleteReminderItem(
    reminder_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> ReminderDeleteResponse:
    try:
        DeleteReminder(db, actor, lookup, reminder_id)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "reminders", exc)
    return ReminderDeleteResponse(Data={"Id": reminder_id})
