from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from student_records.models.user import UserRole


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: UserRole = UserRole.student  # self-service; any role, admin included, may be requested
    first_name: str | None = Field(None, min_length=1)
    last_name: str | None = Field(None, min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str


class UserOut(BaseModel):
    id: int
    email: str
    role: UserRole
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut | None = None
