"""
Router for admin user management.
"""
from typing import Literal, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.security import Principal, require_moderator, require_admin
from db_config import get_async_db
from models.models import UserRoleEnum
from schemas.common import BulkActionResponse, SuccessResponse
from schemas.smell import SortOrder
from schemas.user import AdminUserRead, AdminUserUpdate, UserListResponse, UserBulkRequest
from services.user_admin_service import UserAdminService

router = APIRouter(prefix="/admin/users", tags=["Admin"])


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_limit),
    search: Optional[str] = Query(None, max_length=200),
    role: Optional[UserRoleEnum] = Query(None),
    status_filter: Optional[Literal["active", "inactive"]] = Query(None, alias="status"),
    sort_by: Literal["name", "email", "role", "createdAt"] = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.desc, alias="sortOrder"),
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """List users with engagement counts and last activity."""
    return await UserAdminService(db).list_users(
        page=page,
        limit=limit,
        search=search,
        role=role,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order.value,
    )


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_user_action(
    request: UserBulkRequest,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db)
):
    return await UserAdminService(db).bulk_action(request, principal)


@router.get("/{user_id}", response_model=AdminUserRead)
async def get_user(
    user_id: int,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    return await UserAdminService(db).get_user(user_id)


@router.patch("/{user_id}", response_model=AdminUserRead)
async def update_user(
    user_id: int,
    update_data: AdminUserUpdate,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Edit a user. Changing ``role`` additionally requires ADMIN."""
    return await UserAdminService(db).update_user(user_id, update_data, principal)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db)
):
    await UserAdminService(db).delete_user(user_id, principal)
    return {"success": True, "message": "User deleted successfully"}
