"""
User administration: listing, editing, role changes and bulk actions.
"""
import math
from datetime import timedelta
from typing import Optional
from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import (
    AuthorizationException, ConflictException, ResourceNotFoundException, ValidationException
)
from core.logging import get_logger
from core.security import Principal
from models.models import User, UserActivity, Favorite, Progress, UserRoleEnum, utc_now
from schemas.user import AdminUserRead, AdminUserUpdate, UserBulkRequest

logger = get_logger("user_admin_service")

USER_SORT_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}

BULK_ROLES = {
    "makeAdmin": UserRoleEnum.ADMIN,
    "makeModerator": UserRoleEnum.MODERATOR,
    "makeUser": UserRoleEnum.USER,
}


def _count_of(model):
    return (
        select(func.count(model.id))
        .where(model.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )


def annotated_users():
    last_activity = (
        select(func.max(UserActivity.created_at))
        .where(UserActivity.user_id == User.id)
        .correlate(User)
        .scalar_subquery()
    )
    return select(
        User,
        _count_of(Favorite).label("favorites_count"),
        _count_of(Progress).label("progress_count"),
        _count_of(UserActivity).label("activities_count"),
        last_activity.label("last_activity"),
    )


def to_admin_user(row) -> AdminUserRead:
    user, favorites, progress, activities, last_activity = row
    return AdminUserRead.model_validate(user).model_copy(update={
        "favorites_count": favorites or 0,
        "progress_count": progress or 0,
        "activities_count": activities or 0,
        "last_activity": last_activity,
    })


class UserAdminService:
    """Service for admin-side user management."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[UserRoleEnum] = None,
        status: Optional[str] = None,
        sort_by: str = "createdAt",
        sort_order: str = "desc"
    ) -> dict:
        filters = []
        if search and search.strip():
            term = search.strip()
            filters.append(or_(
                User.name.icontains(term, autoescape=True),
                User.email.icontains(term, autoescape=True),
            ))
        if role is not None:
            filters.append(User.role == role)
        if status in ("active", "inactive"):
            cutoff = utc_now() - timedelta(days=settings.active_user_window_days)
            filters.append(User.updated_at >= cutoff if status == "active" else User.updated_at < cutoff)

        total = (await self.db.execute(
            select(func.count()).select_from(User).where(*filters)
        )).scalar_one()

        column = USER_SORT_COLUMNS.get(sort_by, User.created_at)
        order = (column.asc(), User.id.asc()) if sort_order == "asc" else (column.desc(), User.id.desc())
        stmt = (
            annotated_users()
            .where(*filters)
            .order_by(*order)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        users = [to_admin_user(row) for row in (await self.db.execute(stmt)).all()]

        return {
            "users": users,
            "total": total,
            "page": page,
            "limit": limit,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }

    async def get_user(self, user_id: int) -> AdminUserRead:
        row = (await self.db.execute(annotated_users().where(User.id == user_id))).one_or_none()
        if row is None:
            raise ResourceNotFoundException("User not found")
        return to_admin_user(row)

    async def update_user(self, user_id: int, data: AdminUserUpdate, principal: Principal) -> AdminUserRead:
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundException("User not found")

        changes = data.model_dump(exclude_unset=True)
        if changes.get("role") is None:
            changes.pop("role", None)

        if "role" in changes and changes["role"] != user.role:
            if not principal.is_admin:
                logger.warning("Role change attempted without admin privileges",
                               user_id=principal.user_id, target_user_id=user_id)
                raise AuthorizationException("Only admins can change user roles")
            if user_id == principal.user_id:
                raise ValidationException("You cannot change your own role", field="role")

        if changes.get("email") and changes["email"] != user.email:
            changes["email"] = changes["email"].lower()
            taken = await self.db.execute(
                select(User.id).where(User.email == changes["email"], User.id != user_id)
            )
            if taken.scalar_one_or_none() is not None:
                raise ConflictException("A user with this email already exists", field="email")
        elif "email" in changes and not changes["email"]:
            changes.pop("email")

        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        except IntegrityError:
            await self.db.rollback()
            raise ConflictException("A user with this email already exists", field="email")

        logger.info("User updated by admin", target_user_id=user_id, fields=sorted(changes),
                    user_id=principal.user_id)
        return await self.get_user(user_id)

    async def delete_user(self, user_id: int, principal: Principal) -> None:
        if user_id == principal.user_id:
            raise ValidationException("Use account deletion to remove your own account", field="id")

        result = await self.db.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        await self.db.commit()
        logger.info("User deleted by admin", target_user_id=user_id, user_id=principal.user_id)

    async def bulk_action(self, request: UserBulkRequest, principal: Principal) -> dict:
        """Role changes and deletes over many users; the acting admin is never demoted or deleted."""
        ids = set(request.user_ids)
        if not ids:
            raise ValidationException("No users selected", field="userIds")

        if request.action != "makeAdmin" and principal.user_id in ids:
            ids.discard(principal.user_id)
            logger.warning("Acting admin excluded from bulk action",
                           action=request.action, user_id=principal.user_id)
        if not ids:
            return {"success": True, "affected_count": 0, "action": request.action}

        if request.action == "delete":
            stmt = delete(User).where(User.id.in_(ids))
        else:
            stmt = (
                update(User)
                .where(User.id.in_(ids))
                .values(role=BULK_ROLES[request.action], updated_at=utc_now())
            )

        result = await self.db.execute(stmt.execution_options(synchronize_session=False))
        affected = result.rowcount
        await self.db.commit()

        logger.info("Bulk user action applied", action=request.action, requested=len(request.user_ids),
                    affected=affected, user_id=principal.user_id)
        return {"success": True, "affected_count": affected, "action": request.action}
