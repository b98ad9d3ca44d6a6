# app/modules/invitations/schemas.py

import json
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.password_policy import password_problems
from app.modules.roles.schemas import Role


class PendingUserData(BaseModel):
    """
    Snapshot of the profile-to-be, captured when the invite is issued so
    consumption never has to re-derive it.
    """
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email: str
    full_name: str
    role: Role
    mobile_number: str = ""
    station_id: str = ""
    center_address: str = ""
    registrar: Optional[str] = None


class InviteTokenRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    email: str
    expires_at: datetime
    used: bool = False
    user_data: PendingUserData
    claim_id: Optional[UUID] = None
    claimed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @field_validator("user_data", mode="before")
    @classmethod
    def parse_user_data(cls, v):
        if isinstance(v, str):
            return json.loads(v)
        return v


class IssueInviteRequest(BaseModel):
    """
    Request body to invite a person. `admin_email` is accepted for
    compatibility with older clients but never used for authorization.
    """
    email: EmailStr
    role: Role
    full_name: str = Field(..., min_length=2, max_length=100)
    mobile_number: Optional[str] = Field(default=None, max_length=20)
    station_id: Optional[str] = Field(default=None, max_length=50)
    center_address: Optional[str] = Field(default=None, max_length=500)
    registrar: Optional[str] = Field(default=None, max_length=100)
    admin_email: Optional[str] = None

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class InvitedUser(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: Role


class IssueInviteResponse(BaseModel):
    success: bool = True
    message: str
    user: InvitedUser
    token: str
    invite_link: str
    expires_at: datetime
    email_sent: bool


class SetPasswordRequest(BaseModel):
    """
    validate_only=True only checks the token (safe to call repeatedly);
    otherwise `password` is required and must satisfy the password policy.
    """
    token: str = Field(..., min_length=1)
    validate_only: bool = False
    password: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("password")
    @classmethod
    def check_password(cls, v, info):
        if info.data.get("validate_only"):
            return v
        if not v:
            raise ValueError("Password is required")
        problems = password_problems(v)
        if problems:
            raise ValueError("; ".join(problems))
        return v


class TokenValidation(BaseModel):
    valid: bool
    reason: Optional[str] = None
    user_data: Optional[PendingUserData] = None


class SetPasswordResponse(BaseModel):
    success: bool = True
    message: str
    user_data: Optional[PendingUserData] = None
