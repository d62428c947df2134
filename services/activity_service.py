"""
Append-only user activity log. Rows are added to the caller's session and
committed with the caller's transaction.
"""
import json
from typing import Any, Dict, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from models.models import UserActivity

SIGN_IN = "sign_in"
FAVORITE_ADDED = "favorite_added"
FAVORITE_REMOVED = "favorite_removed"
PROGRESS_ADDED = "progress_added"
PROGRESS_REMOVED = "progress_removed"
PROFILE_UPDATED = "profile_updated"
PREFERENCES_UPDATED = "preferences_updated"
GITHUB_SYNCED = "github_synced"


def record(
    db: AsyncSession,
    user_id: int,
    action: str,
    resource_id: Optional[Any] = None,
    resource_type: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> UserActivity:
    activity = UserActivity(
        user_id=user_id,
        action=action,
        resource_id=str(resource_id) if resource_id is not None else None,
        resource_type=resource_type,
        metadata_json=json.dumps(metadata, default=str) if metadata else None,
    )
    db.add(activity)
    return activity
