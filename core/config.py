"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database settings
    db_host: str = "localhost"
    db_port: str = "5432"
    db_user: str = "user"
    db_password: str = "password"
    db_name: str = "refactorium"
    database_url: Optional[str] = None  # Full async URL, overrides the parts above

    # JWT settings
    jwt_secret_key: str = "change-this-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60 * 24

    # Identity provider settings
    identity_token_secret: str = "change-this-identity-secret"
    identity_token_audience: str = "refactorium"
    github_api_url: str = "https://api.github.com"
    github_token: Optional[str] = None
    github_timeout_seconds: float = 10.0

    # Default admin provisioned on startup
    default_admin_email: Optional[str] = None
    default_admin_name: Optional[str] = None

    # Application settings
    app_name: str = "Refactorium API"
    app_version: str = "0.1.0"
    debug: bool = False
    frontend_url: str = "http://localhost:3000"
    cors_origins: list[str] = ["http://localhost:3000"]

    # Logging settings
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_directory: str = "logs"
    enable_file_logging: bool = False
    log_file_max_size_mb: int = 10
    log_file_backup_count: int = 5
    log_compression: bool = True
    app_log_file: str = "app.log"
    error_log_file: str = "error.log"
    security_log_file: str = "security.log"
    database_log_file: str = "database.log"
    access_log_file: str = "access.log"
    enable_request_logging: bool = True
    enable_sql_logging: bool = False

    # Security settings
    enable_security_headers: bool = True
    enable_request_size_limit: bool = True
    max_request_size_bytes: int = 5 * 1024 * 1024  # 5MB

    # Analytics windows
    active_user_window_days: int = 30
    recent_activity_window_days: int = 7
    popular_smells_limit: int = 20
    top_users_limit: int = 10
    user_activity_series_days: int = 30

    # Pagination
    default_page_limit: int = 20
    max_page_limit: int = 100

    @property
    def async_database_url(self) -> str:
        """Construct the async database URL unless an explicit one is configured."""
        if self.database_url:
            return self.database_url
        return f"postgresql+asyncpg://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
