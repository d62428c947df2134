"""
User-related Pydantic schemas for request/response validation.
"""
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import EmailStr, Field, field_validator
from models.models import UserRoleEnum
from schemas.common import CamelModel, optional_url


class UserProfileRead(CamelModel):
    """Schema for reading a user's profile."""
    id: int
    name: Optional[str] = None
    email: str
    image: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    website: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None
    role: UserRoleEnum
    created_at: datetime
    updated_at: datetime
    last_activity: Optional[datetime] = None


class ProfileUpdate(CamelModel):
    """Self-service profile edit. githubUrl is absent since only the GitHub sync writes it."""
    name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None

    @field_validator("website", "linkedin_url", "twitter_url")
    @classmethod
    def validate_url(cls, v):
        return optional_url(v)


class DeleteAccountResponse(CamelModel):
    message: str
    clear_storage: bool = True


class GithubSyncResponse(CamelModel):
    message: str
    synced: bool
    user: UserProfileRead


class AdminUserRead(UserProfileRead):
    favorites_count: int = 0
    progress_count: int = 0
    activities_count: int = 0


class UserListResponse(CamelModel):
    users: List[AdminUserRead]
    total: int
    page: int
    limit: int
    total_pages: int


class AdminUserUpdate(CamelModel):
    """Admin edit of any user; a role change additionally requires ADMIN."""
    name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[UserRoleEnum] = None
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = None
    github_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    twitter_url: Optional[str] = None

    @field_validator("website", "github_url", "linkedin_url", "twitter_url")
    @classmethod
    def validate_url(cls, v):
        return optional_url(v)


class UserBulkRequest(CamelModel):
    action: Literal["makeAdmin", "makeModerator", "makeUser", "delete"]
    user_ids: List[int]
