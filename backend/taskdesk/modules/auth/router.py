from datetime import timedelta
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskdesk.db import GetDb
from taskdesk.modules.auth.deps import NowUtc, RequireActor, _require_env
from taskdesk.modules.auth.models import RefreshToken, User
from taskdesk.modules.auth.roles import UserRole
from taskdesk.modules.auth.schemas import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenResponse,
    UserOut,
)
from taskdesk.modules.auth.service import (
    CreateAccessToken,
    CreateRefreshToken,
    HashPassword,
    HashRefreshToken,
    VerifyPassword,
    VerifyRefreshToken,
)
from taskdesk.modules.auth.utils.rbac import Actor

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("app.auth")

DEACTIVATED_DETAIL = "Account is deactivated"


def _IssueTokens(db: Session, user: User) -> TokenResponse:
    access_token, expires_in = CreateAccessToken(user.Id)
    refresh_token = CreateRefreshToken()
    refresh_ttl_days = int(_require_env("JWT_REFRESH_TTL_DAYS"))
    db.add(
        RefreshToken(
            UserId=user.Id,
            TokenHash=HashRefreshToken(refresh_token),
            ExpiresAt=NowUtc() + timedelta(days=refresh_ttl_days),
        )
    )
    db.commit()
    return TokenResponse(
        AccessToken=access_token,
        RefreshToken=refresh_token,
        ExpiresIn=expires_in,
        UserId=user.Id,
        Name=user.Name,
        Email=user.Email,
        Role=user.Role,
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def Register(payload: RegisterRequest, db: Session = Depends(GetDb)) -> RegisterResponse:
    name = payload.Name.strip()
    if len(name) < 2:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name required")
    email = payload.Email.strip().lower()

    existing = db.query(User).filter(User.Email == email).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")

    min_length = int(_require_env("AUTH_PASSWORD_MIN_LENGTH"))
    if len(payload.Password) < min_length:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Password must be at least {min_length} characters",
        )

    record = User(
        Name=name,
        Email=email,
        PasswordHash=HashPassword(payload.Password),
        Role=UserRole.User.value,
        ManagerId=None,
        IsActive=True,
    )
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    db.refresh(record)
    logger.info("user registered", extra={"user_id": record.Id})
    return RegisterResponse(Data=UserOut.model_validate(record))


@router.post("/login", response_model=TokenResponse)
def Login(payload: LoginRequest, db: Session = Depends(GetDb)) -> TokenResponse:
    email = payload.Email.strip().lower()
    user = db.query(User).filter(User.Email == email).first()
    if not user or not VerifyPassword(payload.Password, user.PasswordHash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.IsActive:
        logger.info("login refused for deactivated account", extra={"user_id": user.Id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=DEACTIVATED_DETAIL)
    return _IssueTokens(db, user)


@router.post("/refresh", response_model=TokenResponse)
def Refresh(payload: RefreshRequest, db: Session = Depends(GetDb)) -> TokenResponse:
    now = NowUtc()
    tokens = (
        db.query(RefreshToken)
        .filter(RefreshToken.RevokedAt.is_(None), RefreshToken.ExpiresAt > now)
        .all()
    )
    matched = None
    for token in tokens:
        if VerifyRefreshToken(payload.RefreshToken, token.TokenHash):
            matched = token
            break

    if not matched:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.query(User).filter(User.Id == matched.UserId).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    matched.RevokedAt = now
    db.add(matched)
    if not user.IsActive:
        db.commit()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=DEACTIVATED_DETAIL)

    return _IssueTokens(db, user)


@router.post("/logout")
def Logout(
    payload: RefreshRequest,
    actor: Actor = Depends(RequireActor),
    db: Session = Depends(GetDb),
) -> dict:
    tokens = (
        db.query(RefreshToken)
        .filter(RefreshToken.UserId == actor.Id, RefreshToken.RevokedAt.is_(None))
        .all()
    )
    for token in tokens:
        if VerifyRefreshToken(payload.RefreshToken, token.TokenHash):
            token.RevokedAt = NowUtc()
            db.add(token)
            db.commit()
            return {"status": "ok"}
    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Refresh token not found")

