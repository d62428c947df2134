"""
Typed system settings, one model per section.

Stored flat as ``section.field`` keys; reads overlay stored values on these defaults.
"""
from typing import Literal
from pydantic import EmailStr, Field, field_validator
from schemas.common import CamelModel, optional_url

SECRET_MASK = "********"


class GeneralSettings(CamelModel):
    site_name: str = Field("Refactorium", min_length=1)
    site_description: str = "Learn and practice code refactoring"
    site_url: str = "http://localhost:3000"
    maintenance_mode: bool = False
    max_users: int = Field(1000, ge=1)
    max_smells: int = Field(500, ge=1)

    @field_validator("site_url")
    @classmethod
    def validate_site_url(cls, v):
        url = optional_url(v)
        if url is None:
            raise ValueError("must be a valid URL")
        return url


class EmailSettings(CamelModel):
    smtp_host: str = ""
    smtp_port: int = Field(587, ge=1, le=65535)
    smtp_user: str = ""
    smtp_password: str = ""
    from_email: EmailStr = "noreply@refactorium.com"
    from_name: str = "Refactorium"
    enabled: bool = False


class SecuritySettings(CamelModel):
    session_timeout: int = Field(24, ge=1, le=168)  # hours
    max_login_attempts: int = Field(5, ge=1, le=10)
    require_email_verification: bool = True
    allow_registration: bool = True
    password_min_length: int = Field(8, ge=6, le=32)


class FeatureSettings(CamelModel):
    enable_analytics: bool = True
    enable_notifications: bool = True
    enable_comments: bool = False
    enable_ratings: bool = True
    enable_sharing: bool = True


class AppearanceSettings(CamelModel):
    theme: Literal["light", "dark", "auto"] = "auto"
    primary_color: str = "blue"
    logo_url: str = ""
    favicon_url: str = ""

    @field_validator("logo_url", "favicon_url")
    @classmethod
    def validate_urls(cls, v):
        return optional_url(v) or ""


class SystemSettings(CamelModel):
    general: GeneralSettings = Field(default_factory=GeneralSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    features: FeatureSettings = Field(default_factory=FeatureSettings)
    appearance: AppearanceSettings = Field(default_factory=AppearanceSettings)


class SystemSettingsUpdate(CamelModel):
    """Full settings document; every section must be present."""
    general: GeneralSettings
    email: EmailSettings
    security: SecuritySettings
    features: FeatureSettings
    appearance: AppearanceSettings


class EmailTestRequest(CamelModel):
    email: EmailStr
