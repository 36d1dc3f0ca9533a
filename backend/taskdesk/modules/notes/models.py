from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class Note(Base):
    __tablename__ = "notes"

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CategoryId = Column(String(36), ForeignKey("categories.Id", ondelete="SET NULL"), index=True)
    Title = Column(String(255), nullable=False)
    Content = Column(Text, nullable=False)
    Pinned = Column(Boolean, nullable=False, default=False)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
