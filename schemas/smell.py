"""
Pydantic schemas for smells: create/update payloads, listings and bulk actions.
"""
import enum
from datetime import datetime
from typing import List, Literal, Optional
from pydantic import Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from models.models import SmellCategoryEnum, DifficultyLevelEnum
from schemas.common import CamelModel


class SmellSortField(str, enum.Enum):
    title = "title"
    created_at = "createdAt"
    updated_at = "updatedAt"
    category = "category"
    difficulty = "difficulty"
    popularity = "popularity"


class SortOrder(str, enum.Enum):
    asc = "asc"
    desc = "desc"


class PublicationStatus(str, enum.Enum):
    published = "published"
    draft = "draft"
    all = "all"


class SmellQuery(CamelModel):
    """Filter, sort and page instructions for a smell listing."""
    search: Optional[str] = None
    categories: List[SmellCategoryEnum] = Field(default_factory=list)
    difficulties: List[DifficultyLevelEnum] = Field(default_factory=list)
    status: PublicationStatus = PublicationStatus.published
    sort_by: SmellSortField = SmellSortField.created_at
    sort_order: SortOrder = SortOrder.desc
    limit: int = Field(20, ge=1, le=100)
    offset: int = Field(0, ge=0)


class SmellBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    category: SmellCategoryEnum
    description: str = Field(..., min_length=1)
    bad_code: str = Field(..., min_length=1)
    good_code: str = Field(..., min_length=1)
    test_hint: str = ""
    difficulty: DifficultyLevelEnum = DifficultyLevelEnum.BEGINNER
    tags: str = ""
    problem: Optional[str] = None
    solution: Optional[str] = None
    testing: Optional[str] = None
    examples: Optional[str] = None
    references: Optional[str] = None

    @field_validator("title", "description", "bad_code", "good_code")
    @classmethod
    def strip_required_text(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class SmellCreate(SmellBase):
    """New smells start as drafts unless explicitly published."""
    is_published: bool = False


# Fields that may be omitted from an update but never set to null
_REQUIRED_ON_UPDATE = (
    "title", "category", "description", "bad_code", "good_code",
    "test_hint", "difficulty", "tags", "is_published",
)


class SmellUpdate(CamelModel):
    """Partial update: only supplied fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    category: Optional[SmellCategoryEnum] = None
    description: Optional[str] = Field(None, min_length=1)
    bad_code: Optional[str] = Field(None, min_length=1)
    good_code: Optional[str] = Field(None, min_length=1)
    test_hint: Optional[str] = None
    difficulty: Optional[DifficultyLevelEnum] = None
    tags: Optional[str] = None
    is_published: Optional[bool] = None
    problem: Optional[str] = None
    solution: Optional[str] = None
    testing: Optional[str] = None
    examples: Optional[str] = None
    references: Optional[str] = None

    @field_validator("title", "description", "bad_code", "good_code")
    @classmethod
    def strip_required_text(cls, v):
        if v is None:
            return v
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in _REQUIRED_ON_UPDATE:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class SmellRead(SmellBase):
    id: int
    is_published: bool
    created_at: datetime
    updated_at: datetime
    favorites_count: int = 0
    progress_count: int = 0


class SmellListResponse(CamelModel):
    smells: List[SmellRead]
    total: int
    page: int
    limit: int


class AdminSmellListResponse(SmellListResponse):
    total_pages: int


class SmellBulkData(CamelModel):
    category: Optional[SmellCategoryEnum] = None


class SmellBulkRequest(CamelModel):
    action: Literal["publish", "unpublish", "delete", "changeCategory"]
    smell_ids: List[int]
    data: Optional[SmellBulkData] = None
