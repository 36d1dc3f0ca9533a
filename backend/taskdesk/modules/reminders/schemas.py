from datetime import datetime

from pydantic import BaseModel, Field

from taskdesk.modules.core.schemas import PageMeta


class ReminderOut(BaseModel):
    Id: str
    UserId: str
    CreatedByUserId: str
    TaskId: str | None = None
    EventId: str | None = None
    Message: str
    RemindAt: datetime
    IsSent: bool
    SentAt: datetime | None = None
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class ReminderCreate(BaseModel):
    UserId: str | None = Field(default=None, max_length=36)
    TaskId: str | None = Field(default=None, max_length=36)
    EventId: str | None = Field(default=None, max_length=36)
    Message: str = Field(..., min_length=1, max_length=500)
    RemindAt: datetime


class ReminderUpdate(BaseModel):
    TaskId: str | None = Field(default=None, max_length=36)
    EventId: str | None = Field(default=None, max_length=36)
    Message: str | None = Field(default=None, min_length=1, max_length=500)
    RemindAt: datetime | None = None
    IsSent: bool | None = None


class ReminderResponse(BaseModel):
    Data: ReminderOut


class ReminderPageResponse(BaseModel):
    Data: list[ReminderOut]
    Meta: PageMeta


class ReminderDispatchResponse(BaseModel):
    Data: list[ReminderOut]


class ReminderDeleteResponse(BaseModel):
    Data: dict
