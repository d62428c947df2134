"""
Smoke checks: modules import, routes are registered, configuration helpers behave.
"""
from core.config import Settings
from core.security import encrypt_secret, decrypt_secret, Principal
from models.models import UserRoleEnum, DifficultyLevelEnum, DIFFICULTY_ORDER


def test_imports():
    """Test that all modules can be imported successfully."""
    from app import app
    from db_config import Base
    from models.models import User, Smell, Favorite, Progress, UserPreferences, UserActivity, Setting
    from schemas import SmellRead, UserProfileRead, SystemSettings

    tables = set(Base.metadata.tables)
    assert {"user", "smell", "user_smell", "user_progress", "user_preferences", "user_activity", "setting"} <= tables
    assert app.title == "Refactorium API"


def test_routes_registered(client):
    paths = set(client.app.openapi()["paths"])
    for path in (
        "/auth/signin", "/auth/check-role", "/smells", "/smells/{smell_id}", "/smells/bulk",
        "/admin/smells", "/user/favorites", "/user/progress", "/user/profile", "/user/preferences",
        "/user/delete-account", "/user/sync-github", "/admin/users", "/admin/users/{user_id}",
        "/admin/users/bulk", "/admin/stats", "/admin/users/analytics", "/admin/analytics/smells",
        "/admin/analytics/system", "/admin/settings", "/admin/settings/test-email", "/health",
    ):
        assert path in paths, path


def test_database_url_prefers_explicit_value():
    assert Settings(database_url="sqlite+aiosqlite:///x.db").async_database_url == "sqlite+aiosqlite:///x.db"
    built = Settings(database_url=None, db_user="u", db_password="p", db_host="h", db_port="1", db_name="n")
    assert built.async_database_url == "postgresql+asyncpg://u:p@h:1/n"


def test_difficulty_order_is_semantic():
    ranks = [DIFFICULTY_ORDER[level] for level in (
        DifficultyLevelEnum.BEGINNER, DifficultyLevelEnum.EASY, DifficultyLevelEnum.MEDIUM,
        DifficultyLevelEnum.HARD, DifficultyLevelEnum.EXPERT,
    )]
    assert ranks == sorted(ranks)


def test_secret_encryption_round_trip():
    token = encrypt_secret("smtp-pass")
    assert token != "smtp-pass"
    assert decrypt_secret(token) == "smtp-pass"
    assert decrypt_secret("not-a-fernet-token") == ""


def test_principal_roles():
    assert Principal(1, UserRoleEnum.ADMIN).is_moderator
    assert Principal(1, UserRoleEnum.MODERATOR).is_moderator
    assert not Principal(1, UserRoleEnum.MODERATOR).is_admin
    assert not Principal(1, UserRoleEnum.USER).is_moderator
