import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.ownership import (
    ResourceAccessError,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, IsLockedForOwner
from taskdesk.modules.core.errors import RaiseResourceError, RaiseStorageError
from taskdesk.modules.lists.models import TodoList
from taskdesk.modules.lists.schemas import (
    TodoListCreate,
    TodoListDeleteResponse,
    TodoListListResponse,
    TodoListOut,
    TodoListResponse,
    TodoListUpdate,
)
from taskdesk.modules.lists.services import (
    CreateTodoList,
    DeleteTodoList,
    GetTodoList,
    ListTodoLists,
    UpdateTodoList,
)

router = APIRouter(prefix="/api/lists", tags=["lists"])
logger = logging.getLogger("lists")


def _BuildListOut(actor: Actor, record: TodoList) -> TodoListOut:
    return TodoListOut.model_validate(record).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, record.UserId, record.CreatedByUserId)}
    )


@router.get("", response_model=TodoListListResponse)
def ListTodoListItems(
    user_id: str | None = Query(default=None, alias="UserId", max_length=36),
    q: str | None = Query(default=None, alias="Q", max_length=255),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TodoListListResponse:
    try:
        records = ListTodoLists(db, actor, lookup, user_id, q)
        return TodoListListResponse(Data=[_BuildListOut(actor, record) for record in records])
    except ResourceAccessError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "lists", exc)


@router.post("", response_model=TodoListResponse, status_code=status.HTTP_201_CREATED)
def CreateTodoListItem(
    payload: TodoListCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TodoListResponse:
    try:
        record = CreateTodoList(db, actor, lookup, payload.model_dump())
        return TodoListResponse(Data=_BuildListOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "lists", exc)


@router.get("/{list_id}", response_model=TodoListResponse)
def GetTodoListItem(
    list_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TodoListResponse:
    try:
        record = GetTodoList(db, actor, lookup, list_id)
        return TodoListResponse(Data=_BuildListOut(actor, record))
    except (ResourceAccessError, ResourceNotFoundError) as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "lists", exc)


@router.patch("/{list_id}", response_model=TodoListResponse)
def UpdateTodoListItem(
    list_id: str,
    payload: TodoListUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TodoListResponse:
    try:
        record = UpdateTodoList(db, actor, lookup, list_id, payload.model_dump(exclude_unset=True))
        return TodoListResponse(Data=_BuildListOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "lists", exc)


@router.delete("/{list_id}", response_model=TodoListDeleteResponse)
def DeleteTodoListItem(
    list_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TodoListDeleteResponse:
    try:
        deleted_tasks = DeleteTodoList(db, actor, lookup, list_id)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "lists", exc)
    logger.info("list deleted", extra={"list_id": list_id, "deleted_tasks": deleted_tasks})
    return TodoListDeleteResponse(Data={"Id": list_id, "DeletedTasks": deleted_tasks})
