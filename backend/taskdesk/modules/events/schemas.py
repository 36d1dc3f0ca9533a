from datetime import datetime

from pydantic import BaseModel, Field

from taskdesk.modules.core.schemas import PageMeta


class EventOut(BaseModel):
    Id: str
    UserId: str
    CreatedByUserId: str
    TaskId: str | None = None
    Title: str
    Description: str | None = None
    StartsAt: datetime
    EndsAt: datetime
    Location: str | None = None
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class EventCreate(BaseModel):
    UserId: str | None = Field(default=None, max_length=36)
    TaskId: str | None = Field(default=None, max_length=36)
    Title: str = Field(..., min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)
    StartsAt: datetime
    EndsAt: datetime
    Location: str | None = Field(default=None, max_length=255)


class EventUpdate(BaseModel):
    TaskId: str | None = Field(default=None, max_length=36)
    Title: str | None = Field(default=None, min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)
    StartsAt: datetime | None = None
    EndsAt: datetime | None = None
    Location: str | None = Field(default=None, max_length=255)


class EventResponse(BaseModel):
    Data: EventOut


class EventPageResponse(BaseModel):
    Data: list[EventOut]
    Meta: PageMeta


class EventDeleteResponse(BaseModel):
    Data: dict
