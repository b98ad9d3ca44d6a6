# app/modules/audit/router.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.dependencies.database import get_db_connection
from app.dependencies.permissions import require_action
from app.modules.audit.repository import AuditRepository
from app.modules.audit.schemas import AuditLogEntry, AuditQuery
from app.modules.audit.service import AuditService
from app.modules.roles.schemas import Action

router = APIRouter(
    prefix="/audit",
    tags=["Audit"],
)


def get_audit_service(conn=Depends(get_db_connection)) -> AuditService:
    return AuditService(AuditRepository(conn))


@router.get(
    "/logs",
    response_model=List[AuditLogEntry],
    dependencies=[Depends(require_action(Action.AUDIT_READ))],
)
async def list_audit_logs(
    action_type: Optional[str] = None,
    resource_type: Optional[str] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: AuditService = Depends(get_audit_service),
):
    return await service.query(
        AuditQuery(
            action_type=action_type,
            resource_type=resource_type,
            limit=limit,
            offset=offset,
        )
    )
