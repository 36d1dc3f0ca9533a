from taskdesk.modules.auth.utils.ownership import (
    EnsureOwnerAccess,
    EnsurePlainUserIsOwner,
    ResourceAccessError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup, IsLockedForOwner
from taskdesk.modules.tasks.models import Task

STATUS_ONLY_FIELDS = {"Status", "CompletedAt"}


def IsStatusOnlyUpdate(payload: dict) -> bool:
    return bool(payload) and set(payload).issubset(STATUS_ONLY_FIELDS)


def EnsureCanUpdateTask(actor: Actor, task: Task, payload: dict, lookup: AssignmentLookup) -> None:
    """Locked owners may only move a task through its statuses."""
    EnsureOwnerAccess(actor, task.UserId, lookup)
    EnsurePlainUserIsOwner(actor, task.UserId)
    if not IsLockedForOwner(actor, task.UserId, task.CreatedByUserId):
        return
    if not IsStatusOnlyUpdate(payload) or payload.get("Status") is None:
        raise ResourceAccessError("User can only update status on manager-created task")


def EnsureCanDeleteTask(actor: Actor, task: Task, lookup: AssignmentLookup) -> None:
    EnsureOwnerAccess(actor, task.UserId, lookup)
    EnsurePlainUserIsOwner(actor, task.UserId)
    if IsLockedForOwner(actor, task.UserId, task.CreatedByUserId):
        raise ResourceAccessError("User cannot delete manager-created task")
