import secrets
from datetime import timedelta

import jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from taskdesk.modules.auth.deps import NowUtc, _require_env
from taskdesk.modules.auth.models import RefreshToken

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def HashPassword(password: str) -> str:
    return pwd_context.hash(password)


def VerifyPassword(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def CreateAccessToken(user_id: str) -> tuple[str, int]:
    """Issue an access token; only the subject id is trusted on the way back."""
    secret = _require_env("JWT_SECRET_KEY")
    ttl_minutes = int(_require_env("JWT_ACCESS_TTL_MINUTES"))
    now = NowUtc()
    expires = now + timedelta(minutes=ttl_minutes)
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    token = jwt.encode(payload, secret, algorithm="HS256")
    return token, ttl_minutes * 60


def CreateRefreshToken() -> str:
    return secrets.token_urlsafe(48)


def HashRefreshToken(token: str) -> str:
    return pwd_context.hash(token)


def VerifyRefreshToken(token: str, token_hash: str) -> bool:
    return pwd_context.verify(token, token_hash)


def RevokeRefreshTokens(db: Session, user_id: str) -> int:
    """Revoke every live refresh token of a user; the caller commits."""
    now = NowUtc()
    tokens = (
        db.query(RefreshToken)
        .filter(RefreshToken.UserId == user_id, RefreshToken.RevokedAt.is_(None))
        .all()
    )
    for token in tokens:
        token.RevokedAt = now
        db.add(token)
    return len(tokens)
