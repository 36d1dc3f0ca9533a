import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.rbac import Actor, IsLockedForOwner
from taskdesk.modules.core.errors import RaiseResourceError, RaiseStorageError
from taskdesk.modules.tasks.models import Task
from taskdesk.modules.tasks.schemas import (
    TaskCreate,
    TaskDeleteResponse,
    TaskOut,
    TaskPageResponse,
    TaskPriority,
    TaskResponse,
    TaskStatus,
    TaskUpdate,
)
from taskdesk.modules.tasks.services import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    CreateTask,
    DeleteTask,
    GetTask,
    ListTasks,
    UpdateTask,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])
logger = logging.getLogger("tasks")


def _BuildTaskOut(actor: Actor, record: Task) -> TaskOut:
    return TaskOut.model_validate(record).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, record.UserId, record.CreatedByUserId)}
    )


@router.get("", response_model=TaskPageResponse)
def ListTaskItems(
    user_id: str | None = Query(default=None, alias="UserId", max_length=36),
    list_id: str | None = Query(default=None, alias="ListId", max_length=36),
    task_status: TaskStatus | None = Query(default=None, alias="Status"),
    priority: TaskPriority | None = Query(default=None, alias="Priority"),
    page: int = Query(default=1, alias="Page", ge=1),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, alias="Limit", ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TaskPageResponse:
    filters = {"ListId": list_id, "Status": task_status, "Priority": priority}
    try:
        records, meta = ListTasks(db, actor, lookup, user_id, filters, page, limit)
        return TaskPageResponse(Data=[_BuildTaskOut(actor, record) for record in records], Meta=meta)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "tasks", exc)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def CreateTaskItem(
    payload: TaskCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TaskResponse:
    try:
        record = CreateTask(db, actor, lookup, payload.model_dump())
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "tasks", exc)
    if record.CreatedByUserId != record.UserId:
        logger.info(
            "task created on behalf of user",
            extra={"task_id": record.Id, "owner_id": record.UserId, "created_by": record.CreatedByUserId},
        )
    return TaskResponse(Data=_BuildTaskOut(actor, record))


@router.get("/{task_id}", response_model=TaskResponse)
def GetTaskItem(
    task_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TaskResponse:
    try:
        record = GetTask(db, actor, lookup, task_id)
        return TaskResponse(Data=_BuildTaskOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "tasks", exc)


@router.patch("/{task_id}", response_model=TaskResponse)
def UpdateTaskItem(
    task_id: str,
    payload: TaskUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TaskResponse:
    try:
        record = UpdateTask(db, actor, lookup, task_id, payload.model_dump(exclude_unset=True))
        return TaskResponse(Data=_BuildTaskOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "tasks", exc)


@router.delete("/{task_id}", response_model=TaskDeleteResponse)
def DeleteTaskItem(
    task_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> TaskDeleteResponse:
    try:
        DeleteTask(db, actor, lookup, task_id)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "tasks", exc)
    return TaskDeleteResponse(Data={"Id": task_id})
