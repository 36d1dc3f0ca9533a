from taskdesk.modules.auth.roles import UserRole
from taskdesk.modules.auth.utils.rbac import (
    AccessDenied,
    Actor,
    AssignmentLookup,
    CanAccessUser,
    IsLockedForOwner,
    ResolveTargetUserId,
)


class ResourceNotFoundError(ValueError):
    pass


class ResourceAccessError(ValueError):
    pass


class ResourceConflictError(ValueError):
    pass


def ResolveTargetOrRaise(actor: Actor, requested_user_id: str | None, lookup: AssignmentLookup) -> str:
    result = ResolveTargetUserId(actor, requested_user_id, lookup)
    if isinstance(result, AccessDenied):
        raise ResourceAccessError(result.Message)
    return result


def EnsureOwnerAccess(actor: Actor, owner_user_id: str, lookup: AssignmentLookup) -> None:
    if not CanAccessUser(actor, owner_user_id, lookup):
        raise ResourceAccessError("Forbidden")


def EnsurePlainUserIsOwner(actor: Actor, owner_user_id: str) -> None:
    if actor.Role is UserRole.User and actor.Id != owner_user_id:
        raise ResourceAccessError("Forbidden")


def EnsureNotLocked(actor: Actor, record, message: str) -> None:
    if IsLockedForOwner(actor, record.UserId, record.CreatedByUserId):
        raise ResourceAccessError(message)


def EnsureCanModify(actor: Actor, record, lookup: AssignmentLookup, locked_message: str) -> None:
    EnsureOwnerAccess(actor, record.UserId, lookup)
    EnsureNotLocked(actor, record, locked_message)
