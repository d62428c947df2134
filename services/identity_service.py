"""
First-seen user provisioning from identity-provider sign-ins, the default admin
account, and the GitHub profile sync.
"""
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

import httpx
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import ExternalServiceException, ResourceNotFoundException
from core.logging import get_logger
from core.security import create_access_token
from models.models import User, UserRoleEnum
from services import activity_service

logger = get_logger("identity")


def normalize_website(blog: Optional[str]) -> Optional[str]:
    """GitHub's ``blog`` is free text; bare hosts get an https scheme."""
    if not blog or not blog.strip():
        return None
    blog = blog.strip()
    return blog if blog.startswith("http") else f"https://{blog}"


def twitter_profile_url(username: Optional[str]) -> Optional[str]:
    if not username or not username.strip():
        return None
    return f"https://twitter.com/{username.strip().lstrip('@')}"


def profile_fields_from_provider(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Map a provider (GitHub-shaped) profile onto user columns; absent keys are left out."""
    fields = {}
    if profile.get("name"):
        fields["name"] = profile["name"]
    if "bio" in profile:
        fields["bio"] = profile.get("bio") or None
    if "location" in profile:
        fields["location"] = profile.get("location") or None
    if "blog" in profile:
        fields["website"] = normalize_website(profile.get("blog"))
    if "twitter_username" in profile:
        fields["twitter_url"] = twitter_profile_url(profile.get("twitter_username"))
    if profile.get("html_url"):
        fields["github_url"] = profile["html_url"]
    return fields


def github_login_from_url(github_url: Optional[str]) -> Optional[str]:
    if not github_url:
        return None
    path = urlparse(github_url).path.strip("/")
    return path.split("/")[0] if path else None


async def fetch_github_profile(login: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Fetch a GitHub user profile.

    Looks up ``/users/<login>`` when the login is known, otherwise ``/user``
    for the configured token. Returns None when the API cannot be reached or
    answers with an error status.
    """
    headers = {"Accept": "application/vnd.github.v3+json"}
    if settings.github_token:
        headers["Authorization"] = f"Bearer {settings.github_token}"

    if login:
        path = f"/users/{login}"
    elif settings.github_token:
        path = "/user"
    else:
        logger.warning("GitHub sync skipped: no login or token available")
        return None

    try:
        async with httpx.AsyncClient(
            base_url=settings.github_api_url,
            timeout=settings.github_timeout_seconds,
            headers=headers
        ) as client:
            response = await client.get(path)
    except httpx.HTTPError as e:
        logger.warning("GitHub API unreachable", error=str(e), path=path)
        return None

    if response.status_code != 200:
        logger.warning("GitHub API returned an error", status_code=response.status_code, path=path)
        return None

    try:
        payload = response.json()
    except ValueError:
        raise ExternalServiceException("Invalid GitHub profile data received", service="github")
    if not isinstance(payload, dict) or "login" not in payload:
        raise ExternalServiceException("Invalid GitHub profile data received", service="github")
    return payload


class IdentityService:
    """Service for provisioning users from external identities."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def sign_in(self, claims: Dict[str, Any]) -> Tuple[User, str]:
        """
        Provision or refresh the user behind verified provider claims.

        Returns the user and a freshly minted access token.
        """
        email = claims["email"].strip().lower()
        profile_fields = profile_fields_from_provider(claims)
        if claims.get("picture"):
            profile_fields["image"] = claims["picture"]

        user = await self._find_by_email(email)
        created = user is None
        if created:
            user = User(email=email, role=UserRoleEnum.USER, **profile_fields)
            self.db.add(user)
            try:
                await self.db.flush()
            except IntegrityError:
                # Concurrent first sign-in for the same email provisioned it already
                await self.db.rollback()
                user = await self._find_by_email(email)
                created = False

        if not created:
            for field, value in profile_fields.items():
                setattr(user, field, value)

        activity_service.record(self.db, user.id, activity_service.SIGN_IN,
                                resource_type="session", metadata={"provider": claims.get("iss")})
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("User signed in", user_id=user.id, created=created)
        token = create_access_token({"sub": user.id, "role": user.role.value})
        return user, token

    async def ensure_default_admin(self) -> Optional[User]:
        """Create or promote the configured default admin account."""
        if not settings.default_admin_email:
            return None

        email = settings.default_admin_email.strip().lower()
        user = await self._find_by_email(email)
        if user is None:
            user = User(email=email, name=settings.default_admin_name, role=UserRoleEnum.ADMIN)
            self.db.add(user)
            logger.info("Default admin created", email=email)
        elif user.role != UserRoleEnum.ADMIN:
            user.role = UserRoleEnum.ADMIN
            logger.info("Default admin promoted", user_id=user.id)
        else:
            return user

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def sync_github(self, user_id: int) -> Tuple[User, bool]:
        """
        Refresh profile fields from GitHub.

        When GitHub is unavailable the stored data is kept and ``synced`` is
        False. This is the only code path that writes ``github_url``.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            raise ResourceNotFoundException("User not found")

        profile = await fetch_github_profile(github_login_from_url(user.github_url))
        if profile is None:
            logger.info("GitHub sync kept existing data", user_id=user_id)
            return user, False

        fields = profile_fields_from_provider(profile)
        for field, value in fields.items():
            setattr(user, field, value)
        activity_service.record(self.db, user_id, activity_service.GITHUB_SYNCED,
                                resource_id=user_id, resource_type="user",
                                metadata={"login": profile.get("login")})
        try:
            await self.db.commit()
        except (IntegrityError, StaleDataError):
            await self.db.rollback()
            raise ResourceNotFoundException("User not found")
        await self.db.refresh(user)

        logger.info("GitHub profile synced", user_id=user_id, fields=sorted(fields))
        return user, True
