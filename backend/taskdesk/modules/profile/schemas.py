from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from taskdesk.modules.auth.schemas import EMAIL_PATTERN, UserOut


class ThemeChoice(str, Enum):
    System = "system"
    Light = "light"
    Dark = "dark"


class LanguageChoice(str, Enum):
    Serbian = "sr"
    English = "en"


class DensityChoice(str, Enum):
    Compact = "compact"
    Comfortable = "comfortable"


class ProfileUpdate(BaseModel):
    Name: str | None = Field(default=None, min_length=2, max_length=120)
    Email: str | None = Field(default=None, max_length=254, pattern=EMAIL_PATTERN)


class ProfileResponse(BaseModel):
    Data: UserOut


class PreferencesOut(BaseModel):
    UserId: str
    Theme: ThemeChoice
    Language: LanguageChoice
    LayoutDensity: DensityChoice
    Timezone: str
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    Theme: ThemeChoice | None = None
    Language: LanguageChoice | None = None
    LayoutDensity: DensityChoice | None = None
    Timezone: str | None = Field(default=None, min_length=1, max_length=64)


class PreferencesResponse(BaseModel):
    Data: PreferencesOut
