from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field

from taskdesk.modules.core.schemas import PageMeta


class NoteBase(BaseModel):
    Title: str = Field(..., min_length=1, max_length=255)
    Content: str = Field(..., min_length=1, max_length=20000)
    CategoryId: Optional[str] = Field(default=None, max_length=36)
    Pinned: bool = False


class NoteCreate(NoteBase):
    UserId: Optional[str] = Field(default=None, max_length=36)


class NoteUpdate(BaseModel):
    Title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    Content: Optional[str] = Field(default=None, min_length=1, max_length=20000)
    CategoryId: Optional[str] = Field(default=None, max_length=36)
    Pinned: Optional[bool] = None


class NoteOut(NoteBase):
    Id: str
    UserId: str
    CreatedByUserId: str
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class NoteResponse(BaseModel):
    Data: NoteOut


class NotePageResponse(BaseModel):
    Data: List[NoteOut]
    Meta: PageMeta
