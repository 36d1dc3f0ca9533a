from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    Id = Column(String(36), primary_key=True, default=NewId)
    UserId = Column(String(36), ForeignKey("users.Id", ondelete="CASCADE"), nullable=False, unique=True)
    Theme = Column(String(10), nullable=False, default="system")
    Language = Column(String(5), nullable=False, default="sr")
    LayoutDensity = Column(String(12), nullable=False, default="comfortable")
    Timezone = Column(String(64), nullable=False, default="Europe/Belgrade")
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    UpdatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
