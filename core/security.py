"""
Security utilities: access tokens, identity-provider tokens, the request principal and secret encryption.
"""
import base64
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from cryptography.fernet import Fernet, InvalidToken
from core.config import settings
from core.exceptions import AuthenticationException, AuthorizationException
from core.logging import security_logger
from db_config import get_async_db
from models.models import User, UserRoleEnum

# Initialize logger
logger = security_logger

# HTTP Bearer token scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, resolved once per request and passed into services."""
    user_id: int
    role: UserRoleEnum

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleEnum.ADMIN

    @property
    def is_moderator(self) -> bool:
        return self.role in (UserRoleEnum.MODERATOR, UserRoleEnum.ADMIN)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: The data to encode in the token; ``sub`` carries the user id
        expires_delta: Optional custom expiration time

    Returns:
        str: The encoded JWT token
    """
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_access_token_expire_minutes)

    to_encode.update({"exp": expire, "iat": datetime.now(timezone.utc)})
    encoded_jwt = jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    logger.info("Access token created",
                user_id=to_encode.get("sub"),
                expires_at=expire.isoformat())
    return encoded_jwt


def verify_token(token: str) -> Optional[dict]:
    """
    Verify and decode an access token.

    Returns:
        dict: The decoded token payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
        logger.debug("Token verified successfully", user_id=payload.get("sub"))
        return payload
    except JWTError as e:
        logger.warning("Token verification failed", error=str(e))
        return None


def verify_identity_token(id_token: str) -> dict:
    """
    Verify a sign-in token issued by the external identity provider.

    Returns the provider claims; raises AuthenticationException when the
    signature, expiry or audience does not check out, or no email is present.
    """
    try:
        claims = jwt.decode(
            id_token,
            settings.identity_token_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.identity_token_audience,
        )
    except JWTError as e:
        logger.warning("Identity token rejected", error=str(e))
        raise AuthenticationException("Invalid identity token")

    if not claims.get("email"):
        logger.warning("Identity token missing email claim", subject=claims.get("sub"))
        raise AuthenticationException("Identity token has no email")
    return claims


async def get_current_principal(
    token: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_db)
) -> Principal:
    """
    Resolve the caller from the bearer token.

    The user row is re-read so role changes and deletions take effect
    immediately; a token for a deleted user is rejected.
    """
    if token is None:
        raise AuthenticationException("Authentication required")

    payload = verify_token(token.credentials)
    if payload is None:
        raise AuthenticationException("Could not validate credentials")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        logger.warning("Token missing user id claim")
        raise AuthenticationException("Could not validate credentials")

    result = await db.execute(select(User.id, User.role).where(User.id == user_id))
    row = result.one_or_none()
    if row is None:
        logger.warning("User not found for token", user_id=user_id)
        raise AuthenticationException("Could not validate credentials")

    return Principal(user_id=row.id, role=row.role)


async def get_optional_principal(
    token: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_async_db)
) -> Optional[Principal]:
    """Anonymous callers get None; a presented but invalid token is still rejected."""
    if token is None:
        return None
    return await get_current_principal(token, db)


async def require_moderator(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow MODERATOR and ADMIN callers."""
    if not principal.is_moderator:
        logger.warning("Non-moderator attempted admin access",
                       user_id=principal.user_id, role=principal.role.value)
        raise AuthorizationException("Moderator or admin privileges required")
    return principal


async def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow ADMIN callers only."""
    if not principal.is_admin:
        logger.warning("Non-admin user attempted admin action",
                       user_id=principal.user_id, role=principal.role.value)
        raise AuthorizationException("Admin privileges required")
    return principal


# Secret Encryption/Decryption Functions
def _get_encryption_key() -> bytes:
    """Derive the Fernet key from the JWT secret."""
    key_material = settings.jwt_secret_key.encode()
    # Ensure the key is 32 bytes for Fernet
    if len(key_material) < 32:
        key_material = key_material.ljust(32, b'0')
    else:
        key_material = key_material[:32]

    return base64.urlsafe_b64encode(key_material)


def encrypt_secret(plain_value: str) -> str:
    """Encrypt a secret (e.g. the SMTP password) for storage."""
    if not plain_value:
        return ""

    f = Fernet(_get_encryption_key())
    return f.encrypt(plain_value.encode()).decode()


def decrypt_secret(encrypted_value: str) -> str:
    """Decrypt a stored secret; an unreadable value decrypts to an empty string."""
    if not encrypted_value:
        return ""

    try:
        f = Fernet(_get_encryption_key())
        return f.decrypt(encrypted_value.encode()).decode()
    except InvalidToken:
        logger.error("Stored secret could not be decrypted")
        return ""
