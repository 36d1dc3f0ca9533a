from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from taskdesk.modules.admin.models import AdminAuditLog
from taskdesk.modules.auth.models import User
from taskdesk.modules.auth.roles import IsAdmin, IsManager, UserRole
from taskdesk.modules.auth.service import RevokeRefreshTokens
from taskdesk.modules.auth.utils.rbac import Actor
from taskdesk.modules.categories.models import Category
from taskdesk.modules.events.models import CalendarEvent
from taskdesk.modules.lists.models import TodoList
from taskdesk.modules.notes.models import Note
from taskdesk.modules.profile.models import UserPreferences
from taskdesk.modules.reminders.models import Reminder
from taskdesk.modules.tasks.models import Task

logger = logging.getLogger("app.admin")


class AdminServiceError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class AdminUserView:
    User: User
    ManagerName: str | None
    TeamSize: int


@dataclass
class ManagerRemovalResult:
    User: User
    Deleted: dict[str, int] = field(default_factory=dict)
    UnassignedUsersCount: int = 0


def _WriteAudit(db: Session, admin_id: str, target_user_id: str, action: str, details: dict) -> None:
    db.add(
        AdminAuditLog(
            AdminId=admin_id,
            TargetUserId=target_user_id,
            Action=action,
            Details=json.dumps(details, separators=(",", ":")),
        )
    )


def _Snapshot(role: str, is_active: bool, manager_id: str | None) -> dict:
    return {"Role": role, "IsActive": bool(is_active), "ManagerId": manager_id}


def _OwnedOrCreated(model, user_id: str):
    return or_(model.UserId == user_id, model.CreatedByUserId == user_id)


def _DeleteCreatedBy(db: Session, model, user_id: str) -> int:
    return db.query(model).filter(model.CreatedByUserId == user_id).delete(synchronize_session=False)


def _UnlinkTasks(db: Session, task_ids: list[str]) -> None:
    if not task_ids:
        return
    for model in (Reminder, CalendarEvent):
        db.query(model).filter(model.TaskId.in_(task_ids)).update(
            {model.TaskId: None}, synchronize_session=False
        )


def _UnlinkEvents(db: Session, event_ids: list[str]) -> None:
    if event_ids:
        db.query(Reminder).filter(Reminder.EventId.in_(event_ids)).update(
            {Reminder.EventId: None}, synchronize_session=False
        )


def _UnlinkCategories(db: Session, category_ids: list[str]) -> None:
    if not category_ids:
        return
    for model in (Task, Note):
        db.query(model).filter(model.CategoryId.in_(category_ids)).update(
            {model.CategoryId: None}, synchronize_session=False
        )


def _LoadActiveAdmin(db: Session, admin_id: str) -> User:
    admin = db.query(User).filter(User.Id == admin_id).first()
    if not admin or not IsAdmin(admin.Role) or not admin.IsActive:
        raise AdminServiceError(403, "Forbidden")
    return admin


def _LoadUser(db: Session, user_id: str) -> User:
    record = db.query(User).filter(User.Id == user_id).first()
    if not record:
        raise AdminServiceError(404, "User not found")
    return record


def _TeamSizes(db: Session, manager_ids: list[str]) -> dict[str, int]:
    if not manager_ids:
        return {}
    rows = (
        db.query(User.ManagerId, func.count(User.Id))
        .filter(User.Role == UserRole.User.value, User.ManagerId.in_(manager_ids))
        .group_by(User.ManagerId)
        .all()
    )
    return {manager_id: count for manager_id, count in rows}


def _ManagerNames(db: Session, manager_ids: set[str]) -> dict[str, str]:
    if not manager_ids:
        return {}
    rows = db.query(User.Id, User.Name).filter(User.Id.in_(manager_ids)).all()
    return {row.Id: row.Name for row in rows}


def DecorateUsers(db: Session, users: list[User]) -> list[AdminUserView]:
    names = _ManagerNames(db, {user.ManagerId for user in users if user.ManagerId})
    sizes = _TeamSizes(db, [user.Id for user in users])
    return [
        AdminUserView(
            User=user,
            ManagerName=names.get(user.ManagerId) if user.ManagerId else None,
            TeamSize=sizes.get(user.Id, 0),
        )
        for user in users
    ]


def ListUsers(db: Session, role: UserRole | None = None) -> list[AdminUserView]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.Role == role.value)
    users = query.order_by(User.CreatedAt.desc(), User.Id).all()
    return DecorateUsers(db, users)


def AssignUserToManager(db: Session, admin_id: str, user_id: str, manager_id: str | None) -> User:
    """Assign a user-role account to an active manager, or unassign with None.

    Does not commit; the caller owns the transaction.
    """
    manager_id = (manager_id or "").strip() or None
    _LoadActiveAdmin(db, admin_id)
    target = _LoadUser(db, user_id)
    if target.Role != UserRole.User.value:
        raise AdminServiceError(400, "Only USER can be assigned to manager")

    if manager_id:
        if manager_id == target.Id:
            raise AdminServiceError(400, "User cannot be assigned to themselves")
        manager = db.query(User).filter(User.Id == manager_id).first()
        if not manager or not IsManager(manager.Role) or not manager.IsActive:
            raise AdminServiceError(400, "Target manager is invalid or inactive")

    previous_manager_id = target.ManagerId
    target.ManagerId = manager_id
    db.add(target)
    _WriteAudit(
        db,
        admin_id,
        target.Id,
        "assign_user_to_manager" if manager_id else "unassign_user_from_manager",
        {"PreviousManagerId": previous_manager_id, "NextManagerId": manager_id},
    )
    db.flush()
    return target


def RemoveManagerRole(db: Session, admin_id: str, manager_user_id: str, next_role: UserRole) -> ManagerRemovalResult:
    """Demote a manager, dropping everything they created for others.

    Does not commit; the caller owns the transaction.
    """
    if next_role is UserRole.Manager:
        raise AdminServiceError(400, "Invalid role change")
    _LoadActiveAdmin(db, admin_id)
    manager = _LoadUser(db, manager_user_id)
    if not IsManager(manager.Role):
        raise AdminServiceError(400, "Target user is not a manager")

    task_ids = [row.Id for row in db.query(Task.Id).filter(Task.CreatedByUserId == manager.Id).all()]
    category_ids = [row.Id for row in db.query(Category.Id).filter(Category.CreatedByUserId == manager.Id).all()]
    event_ids = [row.Id for row in db.query(CalendarEvent.Id).filter(CalendarEvent.CreatedByUserId == manager.Id).all()]

    deleted = {"Reminders": _DeleteCreatedBy(db, Reminder, manager.Id)}
    _UnlinkEvents(db, event_ids)
    deleted["Events"] = _DeleteCreatedBy(db, CalendarEvent, manager.Id)
    _UnlinkTasks(db, task_ids)
    deleted["Tasks"] = _DeleteCreatedBy(db, Task, manager.Id)
    deleted["Notes"] = _DeleteCreatedBy(db, Note, manager.Id)
    _UnlinkCategories(db, category_ids)
    deleted["Categories"] = _DeleteCreatedBy(db, Category, manager.Id)

    unassigned = (
        db.query(User)
        .filter(User.ManagerId == manager.Id)
        .update({User.ManagerId: None}, synchronize_session=False)
    )

    manager.Role = next_role.value
    manager.ManagerId = None
    db.add(manager)
    RevokeRefreshTokens(db, manager.Id)
    _WriteAudit(
        db,
        admin_id,
        manager.Id,
        "remove_manager_role",
        {"NextRole": next_role.value, "Deleted": deleted, "UnassignedUsersCount": unassigned},
    )
    db.flush()
    db.refresh(manager)
    logger.info(
        "manager role removed",
        extra={"target_user_id": manager.Id, "deleted": deleted, "unassigned": unassigned},
    )
    return ManagerRemovalResult(User=manager, Deleted=deleted, UnassignedUsersCount=unassigned)


def UpdateUser(db: Session, actor: Actor, target_user_id: str, payload: dict) -> AdminUserView:
    if not payload:
        raise AdminServiceError(400, "At least one field is required for update")

    next_role = payload.get("Role")
    if next_role is not None:
        next_role = UserRole(next_role)
    if target_user_id == actor.Id and next_role is not None and next_role is not UserRole.Admin:
        raise AdminServiceError(400, "Administrator cannot remove their own admin role")
    if target_user_id == actor.Id and payload.get("IsActive") is False:
        raise AdminServiceError(400, "Administrator cannot deactivate their own account")

    target = _LoadUser(db, target_user_id)
    previous = _Snapshot(target.Role, target.IsActive, target.ManagerId)

    try:
        removes_manager = IsManager(target.Role) and next_role is not None and next_role is not UserRole.Manager
        if removes_manager:
            RemoveManagerRole(db, actor.Id, target.Id, next_role)

        direct_change = False
        if next_role is not None and not removes_manager:
            target.Role = next_role.value
            if next_role is not UserRole.User:
                target.ManagerId = None
            direct_change = True
        if payload.get("IsActive") is not None:
            target.IsActive = payload["IsActive"]
            direct_change = True
        if direct_change:
            db.add(target)
            db.flush()

        if "ManagerId" in payload:
            if target.Role != UserRole.User.value:
                raise AdminServiceError(400, "Only USER can be assigned to manager")
            AssignUserToManager(db, actor.Id, target.Id, payload["ManagerId"])

        if direct_change:
            RevokeRefreshTokens(db, target.Id)

        _WriteAudit(
            db,
            actor.Id,
            target.Id,
            "update_user",
            {"Previous": previous, "Next": _Snapshot(target.Role, target.IsActive, target.ManagerId)},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(target)
    return DecorateUsers(db, [target])[0]


def DeleteUser(db: Session, actor: Actor, target_user_id: str) -> dict:
    """Delete a user with every record they own or created. Returns a snapshot of the user."""
    if target_user_id == actor.Id:
        raise AdminServiceError(400, "Administrator cannot delete their own account")
    target = _LoadUser(db, target_user_id)
    snapshot = {"Id": target.Id, "Email": target.Email, "Role": target.Role}

    try:
        list_ids = [row.Id for row in db.query(TodoList.Id).filter(_OwnedOrCreated(TodoList, target.Id)).all()]
        task_query = db.query(Task.Id).filter(_OwnedOrCreated(Task, target.Id))
        if list_ids:
            task_query = db.query(Task.Id).filter(or_(_OwnedOrCreated(Task, target.Id), Task.ListId.in_(list_ids)))
        task_ids = [row.Id for row in task_query.all()]
        category_ids = [row.Id for row in db.query(Category.Id).filter(_OwnedOrCreated(Category, target.Id)).all()]

        db.query(Reminder).filter(_OwnedOrCreated(Reminder, target.Id)).delete(synchronize_session=False)
        event_query = db.query(CalendarEvent.Id).filter(_OwnedOrCreated(CalendarEvent, target.Id))
        _UnlinkEvents(db, [row.Id for row in event_query.all()])
        db.query(CalendarEvent).filter(_OwnedOrCreated(CalendarEvent, target.Id)).delete(synchronize_session=False)
        _UnlinkTasks(db, task_ids)
        if task_ids:
            db.query(Task).filter(Task.Id.in_(task_ids)).delete(synchronize_session=False)
        db.query(Note).filter(_OwnedOrCreated(Note, target.Id)).delete(synchronize_session=False)
        _UnlinkCategories(db, category_ids)
        if category_ids:
            db.query(Category).filter(Category.Id.in_(category_ids)).delete(synchronize_session=False)
        if list_ids:
            db.query(TodoList).filter(TodoList.Id.in_(list_ids)).delete(synchronize_session=False)
        db.query(UserPreferences).filter(UserPreferences.UserId == target.Id).delete(synchronize_session=False)
        db.query(User).filter(User.ManagerId == target.Id).update(
            {User.ManagerId: None}, synchronize_session=False
        )
        db.delete(target)
        _WriteAudit(db, actor.Id, snapshot["Id"], "delete_user", {"Deleted": snapshot})
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("user deleted", extra={"target_user_id": snapshot["Id"], "admin_id": actor.Id})
    return snapshot
