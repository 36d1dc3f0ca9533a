from datetime import datetime

from pydantic import BaseModel, Field

COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


class CategoryOut(BaseModel):
    Id: str
    UserId: str
    CreatedByUserId: str
    Name: str
    Color: str
    IsLocked: bool = False
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    UserId: str | None = Field(default=None, max_length=36)
    Name: str = Field(..., min_length=1, max_length=120)
    Color: str | None = Field(default=None, pattern=COLOR_PATTERN)


class CategoryUpdate(BaseModel):
    Name: str | None = Field(default=None, min_length=1, max_length=120)
    Color: str | None = Field(default=None, pattern=COLOR_PATTERN)


class CategoryResponse(BaseModel):
    Data: CategoryOut


class CategoryListResponse(BaseModel):
    Data: list[CategoryOut]


class CategoryDeleteResponse(BaseModel):
    Data: dict
