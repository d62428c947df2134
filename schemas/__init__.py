# Schemas package for Pydantic models
from .common import CamelModel, SuccessResponse, BulkActionResponse
from .smell import (
    SmellQuery, SmellCreate, SmellUpdate, SmellRead, SmellListResponse, AdminSmellListResponse,
    SmellBulkRequest, SmellSortField, SortOrder, PublicationStatus
)
from .user import (
    UserProfileRead, ProfileUpdate, DeleteAccountResponse, GithubSyncResponse,
    AdminUserRead, AdminUserUpdate, UserListResponse, UserBulkRequest
)
from .preference import PreferencesRead, PreferencesUpdate, PreferenceUpdateResponse
from .relation import (
    RelationToggleRequest, RelationToggleResponse, FavoriteRead, ProgressRead,
    FavoritesResponse, ProgressListResponse
)
from .auth import SignInRequest, SignInResponse, RoleCheckResponse
from .analytics import TimeRange, AdminStats, SmellAnalytics, UserAnalytics, SystemAnalytics
from .system_settings import SystemSettings, SystemSettingsUpdate, EmailTestRequest

__all__ = [
    "CamelModel", "SuccessResponse", "BulkActionResponse",
    "SmellQuery", "SmellCreate", "SmellUpdate", "SmellRead", "SmellListResponse", "AdminSmellListResponse",
    "SmellBulkRequest", "SmellSortField", "SortOrder", "PublicationStatus",
    "UserProfileRead", "ProfileUpdate", "DeleteAccountResponse", "GithubSyncResponse",
    "AdminUserRead", "AdminUserUpdate", "UserListResponse", "UserBulkRequest",
    "PreferencesRead", "PreferencesUpdate", "PreferenceUpdateResponse",
    "RelationToggleRequest", "RelationToggleResponse", "FavoriteRead", "ProgressRead",
    "FavoritesResponse", "ProgressListResponse",
    "SignInRequest", "SignInResponse", "RoleCheckResponse",
    "TimeRange", "AdminStats", "SmellAnalytics", "UserAnalytics", "SystemAnalytics",
    "SystemSettings", "SystemSettingsUpdate", "EmailTestRequest",
]
