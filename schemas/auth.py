"""
Authentication schemas.
"""
from schemas.common import CamelModel
from schemas.user import UserProfileRead


class SignInRequest(CamelModel):
    """Token issued by the external identity provider."""
    id_token: str


class SignInResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user: UserProfileRead


class RoleCheckResponse(CamelModel):
    is_admin: bool
    is_moderator: bool
    user_id: int
