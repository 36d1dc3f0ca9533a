from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from taskdesk.modules.auth.roles import UserRole


class DenialReason(str, Enum):
    Unauthenticated = "unauthenticated"
    Deactivated = "deactivated"
    Forbidden = "forbidden"

    @property
    def StatusCode(self) -> int:
        return _DENIAL_STATUS_CODES[self]


_DENIAL_STATUS_CODES = {
    DenialReason.Unauthenticated: 401,
    DenialReason.Deactivated: 403,
    DenialReason.Forbidden: 403,
}

_DENIAL_MESSAGES = {
    DenialReason.Unauthenticated: "Unauthorized",
    DenialReason.Deactivated: "Account is deactivated",
    DenialReason.Forbidden: "You do not have permission for this action",
}


@dataclass(frozen=True)
class Actor:
    Id: str
    Role: UserRole
    IsActive: bool
    ManagerId: str | None = None


@dataclass(frozen=True)
class AccessDenied:
    Reason: DenialReason
    Message: str

    @property
    def StatusCode(self) -> int:
        return self.Reason.StatusCode


class AssignmentLookup(Protocol):
    def IsManagerOfUser(self, manager_id: str, target_user_id: str) -> bool:
        ...


def Deny(reason: DenialReason, message: str | None = None) -> AccessDenied:
    return AccessDenied(Reason=reason, Message=message or _DENIAL_MESSAGES[reason])


def RequireActiveActor(actor: Actor | None) -> Actor | AccessDenied:
    """Gate that runs before every other check."""
    if actor is None:
        return Deny(DenialReason.Unauthenticated)
    if not actor.IsActive:
        return Deny(DenialReason.Deactivated)
    return actor


def CanAccessUser(actor: Actor, target_user_id: str, lookup: AssignmentLookup) -> bool:
    """Check whether the actor may act on data belonging to target_user_id.

    Self access and admins short-circuit before the assignment lookup. Errors
    raised by the lookup propagate to the caller unchanged.
    """
    if actor.Id == target_user_id:
        return True
    if actor.Role is UserRole.Admin:
        return True
    if actor.Role is not UserRole.Manager:
        return False
    return bool(lookup.IsManagerOfUser(actor.Id, target_user_id))


def ResolveTargetUserId(
    actor: Actor,
    requested_target_user_id: str | None,
    lookup: AssignmentLookup,
) -> str | AccessDenied:
    requested = (requested_target_user_id or "").strip()
    if not requested:
        return actor.Id
    if not CanAccessUser(actor, requested, lookup):
        return Deny(DenialReason.Forbidden)
    return requested


def IsLockedForOwner(actor: Actor, owner_user_id: str, created_by_user_id: str) -> bool:
    """A plain user may view, but not edit, records someone else created for them."""
    if actor.Role is not UserRole.User or actor.Id != owner_user_id:
        return False
    return created_by_user_id != actor.Id
