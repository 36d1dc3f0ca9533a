from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    TaskId = Column(String(36), ForeignKey("tasks.Id", ondelete="SET NULL"), index=True)
    Title = Column(String(255), nullable=False)
    Description = Column(Text)
    StartsAt = Column(DateTime(timezone=True), nullable=False, index=True)
    EndsAt = Column(DateTime(timezone=True), nullable=False)
    Location = Column(String(255))
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
