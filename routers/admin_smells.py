"""
Admin content listing: drafts included, page-based paging.
"""
import math
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.security import Principal, require_moderator
from db_config import get_async_db
from models.models import SmellCategoryEnum, DifficultyLevelEnum
from schemas.smell import (
    SmellQuery, AdminSmellListResponse, SmellSortField, SortOrder, PublicationStatus
)
from services.smell_query_service import SmellQueryService

router = APIRouter(prefix="/admin/smells", tags=["Admin"])


@router.get("", response_model=AdminSmellListResponse)
async def list_admin_smells(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=settings.max_page_limit),
    search: Optional[str] = Query(None, max_length=200),
    category: List[SmellCategoryEnum] = Query([]),
    difficulty: List[DifficultyLevelEnum] = Query([]),
    status_filter: PublicationStatus = Query(PublicationStatus.all, alias="status"),
    sort_by: SmellSortField = Query(SmellSortField.created_at, alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.desc, alias="sortOrder"),
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    query = SmellQuery(
        search=search,
        categories=category,
        difficulties=difficulty,
        status=status_filter,
        sort_by=sort_by,
        sort_order=sort_order,
        limit=limit,
        offset=(page - 1) * limit,
    )
    result = await SmellQueryService(db).list_smells(query)
    result["total_pages"] = math.ceil(result["total"] / limit)
    return result
