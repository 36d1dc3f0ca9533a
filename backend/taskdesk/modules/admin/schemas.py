from pydantic import BaseModel, Field

from taskdesk.modules.auth.roles import UserRole
from taskdesk.modules.auth.schemas import UserOut


class AdminUserOut(UserOut):
    ManagerName: str | None = None
    TeamSize: int = 0


class AdminUserUpdate(BaseModel):
    Role: UserRole | None = None
    IsActive: bool | None = None
    ManagerId: str | None = Field(default=None, max_length=36)


class AdminUserResponse(BaseModel):
    Data: AdminUserOut


class AdminUserListResponse(BaseModel):
    Data: list[AdminUserOut]


class AdminDeletedUser(BaseModel):
    Id: str
    Email: str
    Role: UserRole


class AdminUserDeleteResponse(BaseModel):
    Data: AdminDeletedUser
