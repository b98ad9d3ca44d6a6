# app/modules/auth/schemas.py

from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from app.modules.roles.schemas import Role


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SessionUser(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: Role


class TokenResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: SessionUser


class LogoutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out"
