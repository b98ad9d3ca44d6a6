# app/modules/accounts/schemas.py

from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.roles.schemas import Role


class AccountRecord(BaseModel):
    """
    Row of the account directory. `status` is 'invited' until a password is
    set, then 'active'.
    """
    model_config = ConfigDict(from_attributes=True)

    account_id: UUID
    email: str
    hashed_password: Optional[str] = None
    status: str = "invited"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v):
        if v is None:
            return {}
        if isinstance(v, str):
            return json.loads(v)
        return v


class ProfileRecord(BaseModel):
    """
    PendingAccount: the profile row paired with an invitation.
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
    password_set: bool = False
    created_at: Optional[datetime] = None


class UserListResponse(BaseModel):
    success: bool = True
    users: List[ProfileRecord]


class UserDeleteResponse(BaseModel):
    success: bool = True
    message: str
