import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.admin.schemas import (
    AdminDeletedUser,
    AdminUserDeleteResponse,
    AdminUserListResponse,
    AdminUserOut,
    AdminUserResponse,
    AdminUserUpdate,
)
from taskdesk.modules.admin.services import (
    AdminServiceError,
    AdminUserView,
    DeleteUser,
    ListUsers,
    UpdateUser,
)
from taskdesk.modules.auth.deps import RequireAdmin
from taskdesk.modules.auth.roles import UserRole
from taskdesk.modules.auth.utils.rbac import Actor
from taskdesk.modules.core.errors import RaiseStorageError

router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = logging.getLogger("app.admin")


def _handle_admin_error(exc: AdminServiceError) -> None:
    raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc


def _BuildAdminUserOut(view: AdminUserView) -> AdminUserOut:
    return AdminUserOut.model_validate(view.User).model_copy(
        update={"ManagerName": view.ManagerName, "TeamSize": view.TeamSize}
    )


@router.get("/users", response_model=AdminUserListResponse)
def ListAdminUsers(
    role: UserRole | None = Query(default=None, alias="Role"),
    db: Session = Depends(GetDb),
    admin: Actor = Depends(RequireAdmin),
) -> AdminUserListResponse:
    try:
        views = ListUsers(db, role)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "users", exc)
    return AdminUserListResponse(Data=[_BuildAdminUserOut(view) for view in views])


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
def UpdateAdminUser(
    user_id: str,
    payload: AdminUserUpdate,
    db: Session = Depends(GetDb),
    admin: Actor = Depends(RequireAdmin),
) -> AdminUserResponse:
    try:
        view = UpdateUser(db, admin, user_id.strip(), payload.model_dump(exclude_unset=True))
    except AdminServiceError as exc:
        logger.info(
            "admin update rejected",
            extra={"admin_id": admin.Id, "target_user_id": user_id, "reason": exc.message},
        )
        _handle_admin_error(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "users", exc)
    return AdminUserResponse(Data=_BuildAdminUserOut(view))


@router.delete("/users/{user_id}", response_model=AdminUserDeleteResponse)
def DeleteAdminUser(
    user_id: str,
    db: Session = Depends(GetDb),
    admin: Actor = Depends(RequireAdmin),
) -> AdminUserDeleteResponse:
    try:
        snapshot = DeleteUser(db, admin, user_id.strip())
    except AdminServiceError as exc:
        _handle_admin_error(exc)
    except SQLAlchemyError as exc:
        RaiseStorageError(logger, "users", exc)
    return AdminUserDeleteResponse(Data=AdminDeletedUser(**snapshot))
