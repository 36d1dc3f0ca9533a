import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import GetAssignmentLookup, RequireActor, SqlAssignmentLookup
from taskdesk.modules.auth.utils.rbac import Actor, IsLockedForOwner
from taskdesk.modules.categories.models import Category
from taskdesk.modules.categories.schemas import (
    CategoryCreate,
    CategoryDeleteResponse,
    CategoryListResponse,
    CategoryOut,
    CategoryResponse,
    CategoryUpdate,
)
from taskdesk.modules.categories.services import (
    CreateCategory,
    DeleteCategory,
    ListCategories,
    UpdateCategory,
)
from taskdesk.modules.core.errors import RaiseResourceError, RaiseStorageError

router = APIRouter(prefix="/api/categories", tags=["categories"])
logger = logging.getLogger("categories")


def _BuildCategoryOut(actor: Actor, record: Category) -> CategoryOut:
    return CategoryOut.model_validate(record).model_copy(
        update={"IsLocked": IsLockedForOwner(actor, record.UserId, record.CreatedByUserId)}
    )


@router.get("", response_model=CategoryListResponse)
def ListCategoryItems(
    user_id: str | None = Query(default=None, alias="UserId", max_length=36),
    q: str | None = Query(default=None, alias="Q", max_length=255),
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> CategoryListResponse:
    try:
        records = ListCategories(db, actor, lookup, user_id, q)
        return CategoryListResponse(Data=[_BuildCategoryOut(actor, record) for record in records])
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "categories", exc)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def CreateCategoryItem(
    payload: CategoryCreate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> CategoryResponse:
    try:
        record = CreateCategory(db, actor, lookup, payload.model_dump())
        return CategoryResponse(Data=_BuildCategoryOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "categories", exc)


@router.patch("/{category_id}", response_model=CategoryResponse)
def UpdateCategoryItem(
    category_id: str,
    payload: CategoryUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> CategoryResponse:
    try:
        record = UpdateCategory(db, actor, lookup, category_id, payload.model_dump(exclude_unset=True))
        return CategoryResponse(Data=_BuildCategoryOut(actor, record))
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "categories", exc)


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
def DeleteCategoryItem(
    category_id: str,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
    lookup: SqlAssignmentLookup = Depends(GetAssignmentLookup),
) -> CategoryDeleteResponse:
    try:
        DeleteCategory(db, actor, lookup, category_id)
    except ValueError as exc:
        RaiseResourceError(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "categories", exc)
    return CategoryDeleteResponse(Data={"Id": category_id})
