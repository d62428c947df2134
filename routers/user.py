"""
Router for the signed-in user's own data: favorites, progress, profile, preferences.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import Principal, get_current_principal
from db_config import get_async_db
from schemas.preference import PreferencesRead, PreferencesUpdate, PreferenceUpdateResponse
from schemas.relation import (
    RelationToggleRequest, RelationToggleResponse, FavoritesResponse, ProgressListResponse
)
from schemas.user import UserProfileRead, ProfileUpdate, DeleteAccountResponse, GithubSyncResponse
from services.identity_service import IdentityService
from services.profile_service import ProfileService
from services.relationship_service import RelationshipService, RelationKind

router = APIRouter(prefix="/user", tags=["User"])


@router.get("/favorites", response_model=FavoritesResponse)
async def list_favorites(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    favorites = await RelationshipService(db).list_relations(principal, RelationKind.favorite)
    return {"favorites": favorites}


@router.post("/favorites", response_model=RelationToggleResponse)
async def toggle_favorite(
    request: RelationToggleRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    """Add (409 if already present) or remove (idempotent) a favorite."""
    message = await RelationshipService(db).toggle(principal, request.smell_id, RelationKind.favorite, request.action)
    return {"success": True, "message": message}


@router.get("/progress", response_model=ProgressListResponse)
async def list_progress(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    progress = await RelationshipService(db).list_relations(principal, RelationKind.progress)
    return {"progress": progress}


@router.post("/progress", response_model=RelationToggleResponse)
async def toggle_progress(
    request: RelationToggleRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    message = await RelationshipService(db).toggle(principal, request.smell_id, RelationKind.progress, request.action)
    return {"success": True, "message": message}


@router.get("/profile", response_model=UserProfileRead)
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    return await ProfileService(db).get_profile(principal.user_id)


@router.put("/profile", response_model=UserProfileRead)
async def update_profile(
    update_data: ProfileUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    return await ProfileService(db).update_profile(principal.user_id, update_data)


@router.get("/preferences", response_model=PreferencesRead)
async def get_preferences(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    return await ProfileService(db).get_preferences(principal.user_id)


@router.put("/preferences", response_model=PreferenceUpdateResponse)
async def update_preferences(
    update_data: PreferencesUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    preferences = await ProfileService(db).update_preferences(principal.user_id, update_data)
    return {"message": "Preferences updated successfully", "preferences": preferences}


@router.delete("/delete-account", response_model=DeleteAccountResponse)
async def delete_account(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    """Delete the caller's account and everything it owns; the client should drop its session."""
    return await ProfileService(db).delete_account(principal.user_id)


@router.post("/sync-github", response_model=GithubSyncResponse)
async def sync_github(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_async_db)
):
    user, synced = await IdentityService(db).sync_github(principal.user_id)
    message = "Profile synced with GitHub" if synced else "GitHub unavailable, existing profile kept"
    return {
        "message": message,
        "synced": synced,
        "user": await ProfileService(db).profile_read(user),
    }
