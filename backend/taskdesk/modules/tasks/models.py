from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_status", "UserId", "Status"),
        Index("ix_tasks_user_created", "UserId", "CreatedAt"),
    )

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    ListId = Column(String(36), ForeignKey("todo_lists.Id", ondelete="CASCADE"), nullable=False, index=True)
    CategoryId = Column(String(36), ForeignKey("categories.Id", ondelete="SET NULL"), index=True)
    Title = Column(String(255), nullable=False)
    Description = Column(Text)
    Priority = Column(String(10), nullable=False, default="medium")
    Status = Column(String(20), nullable=False, default="not_started")
    DueDate = Column(DateTime(timezone=True))
    CompletedAt = Column(DateTime(timezone=True))
    EstimatedMinutes = Column(Integer, nullable=False, default=30)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
