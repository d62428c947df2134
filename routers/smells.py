"""
Router for smell content: public listing and reads, moderator-only mutations.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.exceptions import AuthorizationException
from core.security import Principal, get_optional_principal, require_moderator
from db_config import get_async_db
from models.models import SmellCategoryEnum, DifficultyLevelEnum
from schemas.common import BulkActionResponse, SuccessResponse
from schemas.smell import (
    SmellQuery, SmellCreate, SmellUpdate, SmellRead, SmellListResponse, SmellBulkRequest,
    SmellSortField, SortOrder, PublicationStatus
)
from services.smell_query_service import SmellQueryService
from services.smell_mutation_service import SmellMutationService

router = APIRouter(prefix="/smells", tags=["Smells"])


@router.get("", response_model=SmellListResponse)
async def list_smells(
    search: Optional[str] = Query(None, max_length=200),
    category: List[SmellCategoryEnum] = Query([]),
    difficulty: List[DifficultyLevelEnum] = Query([]),
    status_filter: PublicationStatus = Query(PublicationStatus.published, alias="status"),
    sort_by: SmellSortField = Query(SmellSortField.created_at, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.desc, alias="sortOrder"),
    limit: int = Query(settings.default_page_limit, ge=1, le=settings.max_page_limit),
    offset: int = Query(0, ge=0),
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_async_db)
):
    """
    List smells with search, category/difficulty filters, sorting and pagination.

    Only published smells are listed unless a moderator asks for drafts.
    """
    if status_filter != PublicationStatus.published and not (principal and principal.is_moderator):
        raise AuthorizationException("Only moderators and admins can list drafts")

    query = SmellQuery(
        search=search,
        categories=category,
        difficulties=difficulty,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=offset,
    )
    return await SmellQueryService(db).list_smells(query)


@router.post("", response_model=SmellRead, status_code=status.HTTP_201_CREATED)
async def create_smell(
    smell_data: SmellCreate,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Create a smell. New smells are drafts unless ``isPublished`` is sent."""
    return await SmellMutationService(db).create_smell(smell_data, principal)


@router.post("/bulk", response_model=BulkActionResponse)
async def bulk_smell_action(
    request: SmellBulkRequest,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Publish, unpublish, delete or re-categorise many smells at once."""
    return await SmellMutationService(db).bulk_action(request, principal)


@router.get("/{smell_id}", response_model=SmellRead)
async def get_smell(
    smell_id: int,
    principal: Optional[Principal] = Depends(get_optional_principal),
    db: AsyncSession = Depends(get_async_db)
):
    return await SmellQueryService(db).get_smell(smell_id, principal)


@router.patch("/{smell_id}", response_model=SmellRead)
async def update_smell(
    smell_id: int,
    update_data: SmellUpdate,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Update only the supplied fields of a smell."""
    return await SmellMutationService(db).update_smell(smell_id, update_data, principal)


@router.delete("/{smell_id}", response_model=SuccessResponse)
async def delete_smell(
    smell_id: int,
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    await SmellMutationService(db).delete_smell(smell_id, principal)
    return {"success": True, "message": "Smell deleted successfully"}
