"""
Authentication routes: identity-provider sign-in and role checks.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging import get_logger
from core.security import Principal, get_current_principal, verify_identity_token
from db_config import get_async_db
from schemas.auth import SignInRequest, SignInResponse, RoleCheckResponse
from services.identity_service import IdentityService
from services.profile_service import ProfileService

router = APIRouter(prefix="/auth", tags=["Authentication"])

# Initialize logger for auth operations
logger = get_logger("auth")


@router.post("/signin", response_model=SignInResponse)
async def sign_in(
    request: SignInRequest,
    db: AsyncSession = Depends(get_async_db)
):
    """
    Exchange a provider-issued identity token for an API access token.

    The first sign-in for an email provisions the account with role USER;
    later sign-ins refresh the profile fields the provider supplies.
    """
    claims = verify_identity_token(request.id_token)
    logger.info("Sign-in attempt", email=claims.get("email"))

    user, access_token = await IdentityService(db).sign_in(claims)
    return {
        "access_token": access_token,
        "token_type": "bearer",
        "user": await ProfileService(db).profile_read(user),
    }


@router.get("/check-role", response_model=RoleCheckResponse)
async def check_role(principal: Principal = Depends(get_current_principal)):
    return {
        "is_admin": principal.is_admin,
        "is_moderator": principal.is_moderator,
        "user_id": principal.user_id,
    }
