"""
Pydantic schemas for User Preferences.
"""
from typing import Optional
from models.models import DifficultyLevelEnum, ProfileVisibilityEnum, ThemeEnum
from schemas.common import CamelModel


class PreferencesRead(CamelModel):
    """Defaults here double as the values a fresh row is created with."""
    theme: ThemeEnum = ThemeEnum.AUTO
    default_difficulty: Optional[DifficultyLevelEnum] = DifficultyLevelEnum.BEGINNER
    email_updates: bool = True
    progress_reminders: bool = False
    new_smells: bool = True
    weekly_digest: bool = True
    profile_visibility: ProfileVisibilityEnum = ProfileVisibilityEnum.PUBLIC
    show_progress: bool = True
    allow_analytics: bool = False


class PreferencesUpdate(CamelModel):
    theme: Optional[ThemeEnum] = None
    default_difficulty: Optional[DifficultyLevelEnum] = None
    email_updates: Optional[bool] = None
    progress_reminders: Optional[bool] = None
    new_smells: Optional[bool] = None
    weekly_digest: Optional[bool] = None
    profile_visibility: Optional[ProfileVisibilityEnum] = None
    show_progress: Optional[bool] = None
    allow_analytics: Optional[bool] = None


class PreferenceUpdateResponse(CamelModel):
    """Response model for preference updates."""
    message: str
    preferences: PreferencesRead
