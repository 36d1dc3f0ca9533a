import logging
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.rbac import Actor, IsLockedForOwner
from taskdesk.modules.core.errors import RaiseResourceError, RaiseStorageError
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.events.schemas import (
    EventCreate,
    EventDeleteResponse,
    EventOut,
    EventPageResponse,
    EventResponse,
    EventUpdate,
)
from taskdesk.modules.events.services import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    CreateEvent,
    DeleteEvent,
    GetEvent,
    ListEvents,
    UpdateEvent,
)

router = APIRouter(prefix="/api/events", tags=["events"])
logger = logging.getLogger("events")


def _BuildEventOut(actor: Actor, record: CalendarEvent) -> EventOut:
    return EventOut.model_validate(record).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, record.UserId, record.CreatedByUserId)}
    )


@router.get("", response_model=EventPageResponse)
def ListEventItems(
    user_id: str | None = Query(default=None, alias="UserId", max_length=36),
    q: str | None = Query(default=None, alias="Q", max_length=255),
    task_id: str | None = Query(default=None, alias="TaskId", max_length=36),
    starts_from: datetime | None = Query(default=None, alias="StartsFrom"),
    starts_to: datetime | None = Query(default=None, alias="StartsTo"),
    page: int = Query(default=1, alias="Page", ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, alias="Limit", ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> EventPageResponse:
    filters = {"Q": q, "TaskId": task_id, "StartsFrom": starts_from, "StartsTo": starts_to}
    try:
        records, meta = ListEvents(db, actor, lookup, user_id, filters, page, limit)
        return EventPageResponse(Data=[_BuildEventOut(actor, record) for record in records], Meta=meta)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "events", exc)


@router.post("", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
def CreateEventItem(
    payload: EventCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> EventResponse:
    try:
        record = CreateEvent(db, actor, lookup, payload.model_dump())
        return EventResponse(Data=_BuildEventOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "events", exc)


@router.get("/{event_id}", response_model=EventResponse)
def GetEventItem(
    event_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> EventResponse:
    try:
        record = GetEvent(db, actor, lookup, event_id)
        return EventResponse(Data=_BuildEventOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "events", exc)


@router.patch("/{event_id}", response_model=EventResponse)
def UpdateEventItem(
    event_id: str,
    payload: EventUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> EventResponse:
    try:
        record = UpdateEvent(db, actor, lookup, event_id, payload.model_dump(exclude_unset=True))
        return EventResponse(Data=_BuildEventOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "events", exc)


@router.delete("/{event_id}", response_model=EventDeleteResponse)
def DeleteEventItem(
    event_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> EventDeleteResponse:
    try:
        DeleteEvent(db, actor, lookup, event_id)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "events", exc)
    return EventDeleteResponse(Data={"Id": event_id})
