from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import RequireActor
from taskdesk.modules.auth.models import User
from taskdesk.modules.auth.schemas import UserOut
from taskdesk.modules.auth.utils.rbac import Actor
from taskdesk.modules.profile.models import UserPreferences
from taskdesk.modules.profile.schemas import (
    PreferencesOut,
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
)

router = APIRouter(prefix="/api", tags=["profile"])


def _LoadUser(db: Session, user_id: str) -> User:
    record = db.query(User).filter(User.Id == user_id).first()
    if not record:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return record


def _EnsurePreferences(db: Session, user_id: str) -> UserPreferences:
    record = db.query(UserPreferences).filter(UserPreferences.UserId == user_id).first()
    if record:
        return record
    record = UserPreferences(UserId=user_id)
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent first read created the row
        db.rollback()
        return db.query(UserPreferences).filter(UserPreferences.UserId == user_id).one()
    db.refresh(record)
    return record


@router.get("/profile", response_model=ProfileResponse)
def GetProfile(
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
) -> ProfileResponse:
    return ProfileResponse(Data=UserOut.model_validate(_LoadUser(db, actor.Id)))


@router.patch("/profile", response_model=ProfileResponse)
def UpdateProfile(
    payload: ProfileUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
) -> ProfileResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not changes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="At least one field is required for update")

    record = _LoadUser(db, actor.Id)
    if "Name" in changes:
        name = changes["Name"].strip()
        if len(name) < 2:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name required")
        record.Name = name
    if "Email" in changes:
        email = changes["Email"].strip().lower()
        taken = db.query(User.Id).filter(User.Email == email, User.Id != record.Id).first()
        if taken:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
        record.Email = email

    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    db.refresh(record)
    return ProfileResponse(Data=UserOut.model_validate(record))


@router.get("/preferences", response_model=PreferencesResponse)
def GetPreferences(
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
) -> PreferencesResponse:
    record = _EnsurePreferences(db, actor.Id)
    return PreferencesResponse(Data=PreferencesOut.model_validate(record))


@router.put("/preferences", response_model=PreferencesResponse)
def UpdatePreferences(
    payload: PreferencesUpdate,
    db: Session = Depends(GetDb),
    actor: Actor = Depends(RequireActor),
) -> PreferencesResponse:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if "Timezone" in changes:
        try:
            ZoneInfo(changes["Timezone"])
        except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid timezone") from exc

    record = _EnsurePreferences(db, actor.Id)
    for field, value in changes.items():
        setattr(record, field, value.value if hasattr(value, "value") else value)
    db.add(record)
    db.commit()
    db.refresh(record)
    return PreferencesResponse(Data=PreferencesOut.model_validate(record))
