from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class TodoList(Base):
    __tablename__ = "todo_lists"

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    Title = Column(String(255), nullable=False)
    Description = Column(Text)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
