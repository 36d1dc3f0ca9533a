from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class Reminder(Base):
    __tablename__ = "reminders"
    __table_args__ = (Index("ix_reminders_user_remind_at", "UserId", "RemindAt"),)

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    TaskId = Column(String(36), ForeignKey("tasks.Id", ondelete="SET NULL"), index=True)
    EventId = Column(String(36), ForeignKey("calendar_events.Id", ondelete="SET NULL"), index=True)
    Message = Column(String(500), nullable=False)
    RemindAt = Column(DateTime(timezone=True), nullable=False)
    IsSent = Column(Boolean, nullable=False, default=False)
    SentAt = Column(DateTime(timezone=True))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
