"""
Profile, preferences and self-service account deletion.
"""
from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ResourceNotFoundException
from core.logging import get_logger
from models.models import User, UserActivity, UserPreferences
from schemas.preference import PreferencesRead, PreferencesUpdate
from schemas.user import ProfileUpdate, UserProfileRead
from services import activity_service

logger = get_logger("profile_service")


class ProfileService:
    """Service for a user's own profile and preferences."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundException("User not found")
        return user

    async def _last_activity(self, user_id: int):
        stmt = select(func.max(UserActivity.created_at)).where(UserActivity.user_id == user_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def profile_read(self, user: User) -> UserProfileRead:
        return UserProfileRead.model_validate(user).model_copy(
            update={"last_activity": await self._last_activity(user.id)}
        )

    async def get_profile(self, user_id: int) -> UserProfileRead:
        return await self.profile_read(await self._get_user(user_id))

    async def update_profile(self, user_id: int, data: ProfileUpdate) -> UserProfileRead:
        user = await self._get_user(user_id)
        changes = data.model_dump(exclude_unset=True)
        for field, value in changes.items():
            setattr(user, field, value)

        activity_service.record(self.db, user_id, activity_service.PROFILE_UPDATED,
                                resource_id=user_id, resource_type="user",
                                metadata={"fields": sorted(changes)})
        try:
            await self.db.commit()
        except (IntegrityError, StaleDataError):
            # The account was deleted while this update was in flight
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        await self.db.refresh(user)

        logger.info("Profile updated", user_id=user_id, fields=sorted(changes))
        return await self.profile_read(user)

    async def delete_account(self, user_id: int) -> dict:
        """Delete the account; favorites, progress, preferences and activity cascade."""
        result = await self.db.execute(delete(User).where(User.id == user_id))
        if result.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        await self.db.commit()

        logger.info("Account deleted", user_id=user_id)
        return {"message": "Account deleted successfully", "clear_storage": True}

    async def _get_preferences_row(self, user_id: int):
        stmt = select(UserPreferences).where(UserPreferences.user_id == user_id)
        return (await self.db.execute(stmt)).scalar_one_or_none()

    async def get_preferences(self, user_id: int) -> PreferencesRead:
        """Stored preferences, or the defaults when none have been saved yet."""
        await self._get_user(user_id)
        row = await self._get_preferences_row(user_id)
        return PreferencesRead.model_validate(row) if row else PreferencesRead()

    async def update_preferences(self, user_id: int, data: PreferencesUpdate) -> PreferencesRead:
        """
        Merge the supplied keys into the user's preferences.

        The row is created on first write; keys not supplied then take their
        defaults.
        """
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        await self._get_user(user_id)

        row = await self._get_preferences_row(user_id)
        created = row is None
        if created:
            row = UserPreferences(user_id=user_id, **changes)
            self.db.add(row)
        else:
            for field, value in changes.items():
                setattr(row, field, value)

        activity_service.record(self.db, user_id, activity_service.PREFERENCES_UPDATED,
                                resource_type="preferences", metadata={"fields": sorted(changes)})
        try:
            await self.db.commit()
        except StaleDataError:
            # the preferences row went with a concurrent account deletion
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        except IntegrityError:
            await self.db.rollback()
            row = await self._get_preferences_row(user_id)
            if row is None:
                raise ResourceNotFoundException("User not found")
            # A concurrent first write created the row; merge into it
            for field, value in changes.items():
                setattr(row, field, value)
            activity_service.record(self.db, user_id, activity_service.PREFERENCES_UPDATED,
                                    resource_type="preferences", metadata={"fields": sorted(changes)})
            await self.db.commit()
            created = False
        await self.db.refresh(row)

        logger.info("Preferences updated", user_id=user_id, created=created, fields=sorted(changes))
        return PreferencesRead.model_validate(row)
