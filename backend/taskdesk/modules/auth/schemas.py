from datetime import datetime

from pydantic import BaseModel, Field

from taskdesk.modules.auth.roles import UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class TokenResponse(BaseModel):
    AccessToken: str
    RefreshToken: str
    TokenType: str = "bearer"
    ExpiresIn: int
    UserId: str
    Name: str
    Email: str
    Role: UserRole


class LoginRequest(BaseModel):
    Email: str = Field(..., max_length=254)
    Password: str = Field(..., max_length=200)


class RegisterRequest(BaseModel):
    Name: str = Field(..., min_length=2, max_length=120)
    Email: str = Field(..., max_length=254, pattern=EMAIL_PATTERN)
    Password: str = Field(..., max_length=200)


class RefreshRequest(BaseModel):
    RefreshToken: str = Field(..., max_length=400)


class UserOut(BaseModel):
    Id: str
    Name: str
    Email: str
    Role: UserRole
    ManagerId: str | None = None
    IsActive: bool
    CreatedAt: datetime
    UpdatedAt: datetime

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    Data: UserOut
