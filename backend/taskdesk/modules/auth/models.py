from datetime import datetime
from uuid import uuid4

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, String
from sqlalchemy.orm import relationship

from taskdesk.db import Base


def NewId() -> str:
    return str(uuid4())


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            '"ManagerId" IS NULL OR "ManagerId" <> "Id"',
            name="ck_users_manager_not_self",
        ),
    )

    Id = Column(String(36), primary_key=True, default=NewId)
    Name = Column(String(120), nullable=False)
    Email = Column(String(254), nullable=False, unique=True, index=True)
    PasswordHash = Column(String(255), nullable=False)
    Role = Column(String(20), nullable=False, default="user")
    ManagerId = Column(String(36), ForeignKey("users.Id", ondelete="SET NULL"), index=True)
    IsActive = Column(Boolean, nullable=False, default=True)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(
        DateTime(timezone=True),
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    RefreshTokens = relationship("RefreshToken", back_populates="User", cascade="all, delete-orphan")


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    TokenHash = Column(String(255), nullable=False)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    ExpiresAt = Column(DateTime(timezone=True), nullable=False)
    RevokedAt = Column(DateTime(timezone=True))

    User = relationship("User", back_populates="RefreshTokens")
