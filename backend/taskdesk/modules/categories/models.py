from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId

DEFAULT_CATEGORY_COLOR = "#4f8cff"


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("UserId", "Name", name="uq_categories_user_name"),)

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    CreatedByUserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, index=True)
    Name = Column(String(120), nullable=False)
    Color = Column(String(7), nullable=False, default=DEFAULT_CATEGORY_COLOR)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
