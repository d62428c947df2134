from .models import (
    User, Smell, Favorite, Progress, UserPreferences, UserActivity, Setting,
    UserRoleEnum, SmellCategoryEnum, DifficultyLevelEnum, ProfileVisibilityEnum, ThemeEnum,
    DIFFICULTY_ORDER, utc_now
)
