"""
Router for typed system settings and the SMTP test message.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import Principal, require_moderator, require_admin
from db_config import get_async_db
from schemas.common import SuccessResponse
from schemas.system_settings import SystemSettings, SystemSettingsUpdate, EmailTestRequest
from services.settings_service import SettingsService

router = APIRouter(prefix="/admin/settings", tags=["Admin"])


@router.get("", response_model=SystemSettings)
async def get_settings(
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Current settings over defaults; the SMTP password is masked."""
    return await SettingsService(db).load()


@router.put("", response_model=SystemSettings)
async def update_settings(
    settings_data: SystemSettingsUpdate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db)
):
    return await SettingsService(db).save(settings_data, principal)


@router.post("/test-email", response_model=SuccessResponse)
async def send_test_email(
    request: EmailTestRequest,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db)
):
    await SettingsService(db).send_test_email(request.email, principal)
    return {"success": True, "message": "Test email sent successfully"}
