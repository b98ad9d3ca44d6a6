# app/modules/settings/router.py

from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.core.cache import cache
from app.dependencies.database import get_db_connection
from app.dependencies.permissions import require_action
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.modules.roles.schemas import Action
from app.modules.settings.repository import SettingsRepository
from app.modules.settings.schemas import SessionTimeoutResponse, SessionTimeoutUpdate
from app.modules.settings.service import SettingsService

router = APIRouter(
    prefix="/settings",
    tags=["Settings"],
)


def get_settings_service(conn=Depends(get_db_connection)) -> SettingsService:
    return SettingsService(SettingsRepository(conn), cache, AuditService(AuditRepository(conn)))


@router.get(
    "/session-timeout",
    response_model=SessionTimeoutResponse,
    dependencies=[Depends(require_action(Action.SETTINGS_READ))],
)
async def get_session_timeout(
    service: SettingsService = Depends(get_settings_service),
):
    return await service.get_session_timeout()


@router.put("/session-timeout", response_model=SessionTimeoutResponse)
async def update_session_timeout(
    request: Request,
    body: SessionTimeoutUpdate,
    user_id: UUID = Depends(require_action(Action.SETTINGS_UPDATE)),
    service: SettingsService = Depends(get_settings_service),
):
    ip = request.client.host if request.client else None
    return await service.update_session_timeout(user_id, body, ip_address=ip)
