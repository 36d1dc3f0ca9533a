from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskdesk.modules.auth.utils.ownership import (
    EnsureCanModify,
    ResolveTargetOrRaise,
    ResourceConflictError,
    ResourceNotFoundError,
)
from taskdesk.modules.auth.utils.rbac import Actor, AssignmentLookup
from taskdesk.modules.categories.models import DEFAULT_CATEGORY_COLOR, Category
from taskdesk.modules.notes.models import Note
from taskdesk.modules.tasks.models import Task

LOCKED_CATEGORY_MESSAGE = "User cannot modify manager-created category"
DUPLICATE_CATEGORY_MESSAGE = "Category with this name already exists"


def _CleanName(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError("Name required")
    return name


def _EnsureUniqueName(db: Session, user_id: str, name: str, exclude_id: str | None = None) -> None:
    query = db.query(Category.Id).filter(Category.UserId == user_id, Category.Name == name)
    if exclude_id:
        query = query.filter(Category.Id != exclude_id)
    if query.first():
        raise ResourceConflictError(DUPLICATE_CATEGORY_MESSAGE)


def _CommitOrConflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ResourceConflictError(DUPLICATE_CATEGORY_MESSAGE) from exc


def ListCategories(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    requested_user_id: str | None,
    search: str | None = None,
) -> list[Category]:
    target_user_id = ResolveTargetOrRaise(actor, requested_user_id, lookup)
    query = db.query(Category).filter(Category.UserId == target_user_id)
    term = (search or "").strip()
    if term:
        query = query.filter(Category.Name.ilike(f"%{term}%"))
    return query.order_by(Category.Name.asc()).all()


def CreateCategory(db: Session, actor: Actor, lookup: AssignmentLookup, payload: dict) -> Category:
    target_user_id = ResolveTargetOrRaise(actor, payload.get("UserId"), lookup)
    name = _CleanName(payload["Name"])
    _EnsureUniqueName(db, target_user_id, name)
    record = Category(
        UserId=target_user_id,
        CreatedByUserId=actor.Id,
        Name=name,
        Color=payload.get("Color") or DEFAULT_CATEGORY_COLOR,
    )
    db.add(record)
    _CommitOrConflict(db)
    db.refresh(record)
    return record


def _GetCategory(db: Session, category_id: str) -> Category:
    record = db.query(Category).filter(Category.Id == category_id).first()
    if not record:
        raise ResourceNotFoundError("Category not found")
    return record


def UpdateCategory(
    db: Session,
    actor: Actor,
    lookup: AssignmentLookup,
    category_id: str,
    payload: dict,
) -> Category:
    if not payload:
        raise ValueError("At least one field is required for update")
    record = _GetCategory(db, category_id)
    EnsureCanModify(actor, record, lookup, LOCKED_CATEGORY_MESSAGE)

    if "Name" in payload:
        if payload["Name"] is None:
            raise ValueError("Name required")
        name = _CleanName(payload["Name"])
        _EnsureUniqueName(db, record.UserId, name, exclude_id=record.Id)
        record.Name = name
    if payload.get("Color"):
        record.Color = payload["Color"]

    db.add(record)
    _CommitOrConflict(db)
    db.refresh(record)
    return record


def DeleteCategory(db: Session, actor: Actor, lookup: AssignmentLookup, category_id: str) -> None:
    record = _GetCategory(db, category_id)
    EnsureCanModify(actor, record, lookup, LOCKED_CATEGORY_MESSAGE)
    db.query(Task).filter(Task.CategoryId == record.Id).update(
        {Task.CategoryId: None}, synchronize_session=False
    )
    db.query(Note).filter(Note.CategoryId == record.Id).update(
        {Note.CategoryId: None}, synchronize_session=False
    )
    db.delete(record)
    db.commit()
