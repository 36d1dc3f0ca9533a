from datetime import datetime

from pydantic import BaseModel, Field


class TodoListOut(BaseModel):
    Id: str
    UserId: str
    CreatedByUserId: str
    Title: str
    Description: str | None = None
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class TodoListCreate(BaseModel):
    UserId: str | None = Field(default=None, max_length=36)
    Title: str = Field(..., min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)


class TodoListUpdate(BaseModel):
    Title: str | None = Field(default=None, min_length=1, max_length=255)
    Description: str | None = Field(default=None, max_length=5000)


class TodoListResponse(BaseModel):
    Data: TodoListOut


class TodoListListResponse(BaseModel):
    Data: list[TodoListOut]


class TodoListDeleteResponse(BaseModel):
    Data: dict
