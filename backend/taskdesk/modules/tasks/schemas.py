from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from taskdesk.modules.core.schemas import PageMeta


class TaskPriority(str, Enum):
    Low = "low"
    Medium = "medium"
    High = "high"


class TaskStatus(str, Enum):
    NotStarted = "not_started"
    InProgress = "in_progress"
    Done = "done"


class TaskOut(BaseModel):
    Id: str
    UserId: str
    CreatedByUserId: str
    ListId: str
    CategoryId: str | None = None
    Title: str
    Description: str | None = None
    Priority: TaskPriority
    Status: TaskStatus
    DueDate: datetime | None = None
    CompletedAt: datetime | None = None
    EstimatedMinutes: int
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class TaskCreate(BaseModel):
    UserId: str | None = Field(default=None, max_length=36)
    ListId: str = Field(..., max_length=36)
    CategoryId: str | None = Field(default=None, max_length=36)
    Title: str = Field(..., min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)
    Priority: TaskPriority = TaskPriority.Medium
    Status: TaskStatus = TaskStatus.NotStarted
    DueDate: datetime | None = None
    CompletedAt: datetime | None = None
    EstimatedMinutes: int = Field(default=30, ge=1, le=10080)


class TaskUpdate(BaseModel):
    ListId: str | None = Field(default=None, max_length=36)
    CategoryId: str | None = Field(default=None, max_length=36)
    Title: str | None = Field(default=None, min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)
    Priority: TaskPriority | None = None
    Status: TaskStatus | None = None
    DueDate: datetime | None = None
    CompletedAt: datetime | None = None
    EstimatedMinutes: int | None = Field(default=None, ge=1, le=10080)


class TaskResponse(BaseModel):
    Data: TaskOut


class TaskPageResponse(BaseModel):
    Data: list[TaskOut]
    Meta: PageMeta


class TaskDeleteResponse(BaseModel):
    Data: dict
