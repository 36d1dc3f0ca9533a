from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text

from taskdesk.db import Base
from taskdesk.modules.auth.models import NewId


class AdminAuditLog(Base):
    __tablename__ = "admin_audit_logs"

    Id = Column(String(36), primary_key=True, default=NewId)
    AdminId = Column(String(36), ForeignKey("users.Id", ondelete="SET NULL"), index=True)
    TargetUserId = Column(String(36), index=True)
    Action = Column(String(60), nullable=False)
    Details = Column(Text)
    CreatedAt = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
