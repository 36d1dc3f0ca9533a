import logging
import os
from datetime import datetime, timezone
from typing import NoReturn

import jwt
from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.models import User
from taskdesk.modules.auth.roles import ParseRole, UserRole
from taskdesk.modules.auth.utils.rbac import (
    AccessDenied,
    Actor,
    DenialReason,
    Deny,
    RequireActiveActor,
)

logger = logging.getLogger("app.auth")


def _require_env(name: str) -> str:
    value = os.getenv(name, "").strip()
    if not value:
        raise RuntimeError(f"Missing required env var: {name}")
    return value


def _decode_access_token(token: str) -> dict | None:
    secret = _require_env("JWT_SECRET_KEY")
    try:
        return jwt.decode(token, secret, algorithms=["HS256"])
    except jwt.ExpiredSignatureError:
        logger.info("access token expired")
        return None
    except jwt.InvalidTokenError:
        logger.info("access token rejected")
        return None


def _read_bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header.replace("Bearer ", "", 1).strip()
    return token or None


def ResolveSessionActor(
    request: Request,
    db: Session = Depends(GetDb),
) -> Actor | None:
    """Resolve the caller from the bearer token.

    Role, active flag and manager are always re-read from the users table;
    token claims only carry the subject id.
    """
    token = _read_bearer_token(request)
    if not token:
        return None
    payload = _decode_access_token(token)
    if not payload:
        return None
    user_id = payload.get("sub")
    if not user_id:
        return None

    user = db.query(User).filter(User.Id == str(user_id)).first()
    if not user:
        return None
    role = ParseRole(user.Role)
    if role is None:
        logger.warning("user has unknown role", extra={"user_id": user.Id, "role": user.Role})
        return None
    return Actor(Id=user.Id, Role=role, IsActive=bool(user.IsActive), ManagerId=user.ManagerId)


def RaiseForDenial(denial: AccessDenied) -> NoReturn:
    raise HTTPException(status_code=denial.StatusCode, detail=denial.Message)


def RequireActor(actor: Actor | None = Depends(ResolveSessionActor)) -> Actor:
    result = RequireActiveActor(actor)
    if isinstance(result, AccessDenied):
        logger.info(
            "request denied",
            extra={"reason": result.Reason.value, "user_id": actor.Id if actor else None},
        )
        RaiseForDenial(result)
    return result


def RequireAdmin(actor: Actor = Depends(RequireActor)) -> Actor:
    if not actor.Role.Covers(UserRole.Admin):
        logger.info("admin access denied", extra={"user_id": actor.Id, "role": actor.Role.value})
        RaiseForDenial(Deny(DenialReason.Forbidden))
    return actor


class SqlAssignmentLookup:
    def __init__(self, db: Session):
        self._db = db

    def IsManagerOfUser(self, manager_id: str, target_user_id: str) -> bool:
        managed = (
            self._db.query(User.Id)
            .filter(
                User.Id == target_user_id,
                User.ManagerId == manager_id,
                User.Role == UserRole.User.value,
            )
            .first()
        )
        return managed is not None


def GetAssignmentLookup(db: Session = Depends(GetDb)) -> SqlAssignmentLookup:
    return SqlAssignmentLookup(db)


def NowUtc() -> datetime:
    return datetime.now(tz=timezone.utc)


def AsUtc(value: datetime | None) -> datetime | None:
    """Naive values are taken as UTC; SQLite hands timestamps back without a zone."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
