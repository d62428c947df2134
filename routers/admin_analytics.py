"""
Router for admin dashboard statistics and analytics.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging import get_logger
from core.security import Principal, require_moderator
from db_config import get_async_db
from schemas.analytics import AdminStats, SmellAnalytics, UserAnalytics, SystemAnalytics, TimeRange
from services.analytics_service import AnalyticsService

router = APIRouter(prefix="/admin", tags=["Admin Analytics"])
logger = get_logger("analytics")


@router.get("/stats", response_model=AdminStats)
async def get_admin_stats(
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Overview counts for the dashboard landing page."""
    return await AnalyticsService(db).overview()


@router.get("/users/analytics", response_model=UserAnalytics)
async def get_user_analytics(
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    return await AnalyticsService(db).user_analytics()


@router.get("/analytics/smells", response_model=SmellAnalytics)
async def get_smell_analytics(
    time_range: TimeRange = Query(TimeRange.month, alias="timeRange"),
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    """Content breakdowns plus a per-day creation series over ``timeRange``."""
    logger.debug("Smell analytics requested", time_range=time_range.value, user_id=principal.user_id)
    return await AnalyticsService(db).smell_analytics(time_range)


@router.get("/analytics/system", response_model=SystemAnalytics)
async def get_system_analytics(
    principal: Principal = Depends(require_moderator),
    db: AsyncSession = Depends(get_async_db)
):
    return await AnalyticsService(db).system_analytics()
