# app/modules/audit/schemas.py
import json

from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any
from uuid import UUID
from datetime import datetime


class AuditLogCreate(BaseModel):
    action_type: str
    resource_type: str
    resource_id: str
    details: Dict[str, Any] = Field(default_factory=dict)


class AuditLogEntry(BaseModel):
    audit_id: UUID
    actor_user_id: Optional[UUID]
    action_type: str
    resource_type: str
    resource_id: str
    ip_address: Optional[str] = None
    created_at: datetime
    details: Optional[Dict[str, Any]] = None

    @field_validator("details", mode="before")
    @classmethod
    def parse_details(cls, v):
        if v is None:
            return v
        if isinstance(v, str):
            # DB returns JSON as text -> parse it
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return {"raw": v}
        return v


class AuditQuery(BaseModel):
    """
    Filters for querying audit logs.
    """
    action_type: Optional[str] = None
    resource_type: Optional[str] = None
    limit: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)
