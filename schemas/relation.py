"""
Schemas for a user's favorite and progress relations to smells.
"""
from datetime import datetime
from typing import List, Literal
from models.models import SmellCategoryEnum, DifficultyLevelEnum
from schemas.common import CamelModel


class RelationToggleRequest(CamelModel):
    smell_id: int
    action: Literal["add", "remove"]


class RelatedSmell(CamelModel):
    """Display fields of a smell inside a relation listing."""
    id: int
    title: str
    category: SmellCategoryEnum
    description: str
    difficulty: DifficultyLevelEnum
    tags: str
    created_at: datetime


class FavoriteRead(CamelModel):
    id: int
    smell_id: int
    created_at: datetime
    smell: RelatedSmell


class ProgressRead(FavoriteRead):
    completed: bool


class FavoritesResponse(CamelModel):
    favorites: List[FavoriteRead]


class ProgressListResponse(CamelModel):
    progress: List[ProgressRead]


class RelationToggleResponse(CamelModel):
    success: bool = True
    message: str
