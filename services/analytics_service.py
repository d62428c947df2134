"""
Admin analytics: overview counts, group-bys, rankings and daily/hourly series.

Every aggregation runs inside the request; any failing query fails the whole response.
"""
import os
import time
from datetime import datetime, timezone, timedelta
from typing import Dict, List

import psutil
from sqlalchemy import select, func, or_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.logging import get_logger
from models.models import Smell, User, Favorite, Progress, UserActivity
from schemas.analytics import TimeRange

logger = get_logger("analytics_service")

RANGE_DAYS = {
    TimeRange.week: 7,
    TimeRange.month: 30,
    TimeRange.quarter: 90,
    TimeRange.year: 365,
}


def utc_midnight(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)


def month_start(moment: datetime, months_back: int = 0) -> datetime:
    year, month = moment.year, moment.month - months_back
    while month < 1:
        month += 12
        year -= 1
    return datetime(year, month, 1, tzinfo=timezone.utc)


def host_metrics() -> Dict[str, float]:
    """Process and host figures from psutil."""
    process = psutil.Process(os.getpid())
    return {
        "cpu_percent": psutil.cpu_percent(interval=None),
        "memory_percent": psutil.virtual_memory().percent,
        "disk_percent": psutil.disk_usage("/").percent,
        "process_memory_mb": round(process.memory_info().rss / (1024 * 1024), 2),
        "uptime_seconds": round(time.time() - process.create_time(), 2),
    }


class AnalyticsService:
    """Read-only aggregations for the admin dashboard."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _scalar(self, stmt) -> int:
        return (await self.db.execute(stmt)).scalar_one() or 0

    async def _count(self, model, *criteria) -> int:
        return await self._scalar(select(func.count()).select_from(model).where(*criteria))

    async def _active_users(self, since: datetime) -> int:
        recent_activity = exists().where(
            UserActivity.user_id == User.id,
            UserActivity.created_at >= since
        )
        return await self._count(User, or_(User.updated_at >= since, recent_activity))

    async def _daily_series(self, column, first_day: datetime, days: int) -> List[dict]:
        """One bucket per UTC calendar day from ``first_day``, zero-count days included."""
        series = []
        for offset in range(days):
            day = first_day + timedelta(days=offset)
            count = await self._count(column.class_, column >= day, column < day + timedelta(days=1))
            series.append({"date": day.date().isoformat(), "count": count})
        return series

    async def overview(self) -> dict:
        now = datetime.now(timezone.utc)
        return {
            "total_smells": await self._count(Smell),
            "published_smells": await self._count(Smell, Smell.is_published.is_(True)),
            "draft_smells": await self._count(Smell, Smell.is_published.is_(False)),
            "total_users": await self._count(User),
            "active_users": await self._active_users(now - timedelta(days=settings.active_user_window_days)),
            "total_favorites": await self._count(Favorite),
            "total_progress": await self._count(Progress),
            "recent_activity": await self._count(
                UserActivity,
                UserActivity.created_at >= now - timedelta(days=settings.recent_activity_window_days)
            ),
        }

    async def _group_counts(self, column) -> Dict[str, int]:
        rows = (await self.db.execute(select(column, func.count()).group_by(column))).all()
        return {key.value: count for key, count in rows}

    async def smell_analytics(self, time_range: TimeRange = TimeRange.month) -> dict:
        today = utc_midnight(datetime.now(timezone.utc))
        days = RANGE_DAYS[time_range]

        favorites = func.count(Favorite.id.distinct())
        progress = func.count(Progress.id.distinct())
        engagement = (
            select(Smell.id, Smell.title, Smell.category, favorites.label("favorites"), progress.label("progress"))
            .outerjoin(Favorite, Favorite.smell_id == Smell.id)
            .outerjoin(Progress, Progress.smell_id == Smell.id)
            .group_by(Smell.id, Smell.title, Smell.category)
        )
        rows = (await self.db.execute(engagement)).all()

        popular = sorted(rows, key=lambda r: (-r.favorites, -r.progress, r.id))[:settings.popular_smells_limit]

        category_stats: Dict[str, Dict[str, int]] = {}
        for row in rows:
            stats = category_stats.setdefault(row.category.value, {"favorites": 0, "progress": 0})
            stats["favorites"] += row.favorites
            stats["progress"] += row.progress

        return {
            "smells_by_category": await self._group_counts(Smell.category),
            "smells_by_difficulty": await self._group_counts(Smell.difficulty),
            "popular_smells": [
                {"id": r.id, "title": r.title, "favorites": r.favorites, "progress": r.progress}
                for r in popular
            ],
            # the window is the last N days plus today
            "smells_over_time": await self._daily_series(Smell.created_at, today - timedelta(days=days), days + 1),
            "published_smells": await self._count(Smell, Smell.is_published.is_(True)),
            "draft_smells": await self._count(Smell, Smell.is_published.is_(False)),
            "category_stats": category_stats,
        }

    async def _top_users(self) -> List[dict]:
        def count_of(model):
            return (
                select(func.count(model.id))
                .where(model.user_id == User.id)
                .correlate(User)
                .scalar_subquery()
            )

        activities = count_of(UserActivity).label("activities_count")
        last_active = (
            select(func.max(UserActivity.created_at))
            .where(UserActivity.user_id == User.id)
            .correlate(User)
            .scalar_subquery()
            .label("last_active")
        )
        stmt = (
            select(
                User.id, User.name, User.email,
                count_of(Favorite).label("favorites_count"),
                count_of(Progress).label("progress_count"),
                activities,
                last_active,
            )
            .order_by(activities.desc(), User.id.asc())
            .limit(settings.top_users_limit)
        )
        return [
            {
                "id": r.id,
                "name": r.name or "No Name",
                "email": r.email,
                "favorites_count": r.favorites_count,
                "progress_count": r.progress_count,
                "activities_count": r.activities_count,
                "last_active": r.last_active,
            }
            for r in (await self.db.execute(stmt)).all()
        ]

    async def user_analytics(self) -> dict:
        now = datetime.now(timezone.utc)
        this_month = month_start(now)
        last_month = month_start(now, months_back=1)

        new_this_month = await self._count(User, User.created_at >= this_month)
        new_last_month = await self._count(User, User.created_at >= last_month, User.created_at < this_month)
        growth = (new_this_month - new_last_month) / new_last_month * 100 if new_last_month else 0.0

        series_days = settings.user_activity_series_days
        first_day = utc_midnight(now) - timedelta(days=series_days - 1)

        return {
            "total_users": await self._count(User),
            "active_users": await self._active_users(now - timedelta(days=settings.active_user_window_days)),
            "new_users_this_month": new_this_month,
            "user_growth_rate": round(growth, 2),
            "users_by_role": await self._group_counts(User.role),
            "top_users": await self._top_users(),
            "activity_data": await self._daily_series(UserActivity.created_at, first_day, series_days),
        }

    async def system_analytics(self) -> dict:
        now = datetime.now(timezone.utc)
        day_ago = now - timedelta(days=1)
        week_ago = now - timedelta(days=7)
        month_ago = now - timedelta(days=30)

        total_users = await self._count(User)
        active_users = await self._active_users(day_ago)
        smells_this_week = await self._count(Smell, Smell.created_at >= week_ago)
        users_this_week = await self._count(User, User.created_at >= week_ago)
        users_this_month = await self._count(User, User.created_at >= month_ago)

        today = utc_midnight(now)
        hourly = []
        for hour in range(24):
            start = today + timedelta(hours=hour)
            count = await self._count(
                UserActivity, UserActivity.created_at >= start, UserActivity.created_at < start + timedelta(hours=1)
            )
            hourly.append({"hour": hour, "count": count})

        return {
            "performance": host_metrics(),
            "engagement": {
                "total_users": total_users,
                "active_users": active_users,
                "recent_activity": await self._count(UserActivity, UserActivity.created_at >= day_ago),
                "user_engagement_rate": round(active_users / total_users * 100, 2) if total_users else 0.0,
            },
            "content": {
                "total_smells": await self._count(Smell),
                "smells_this_week": smells_this_week,
                "smells_this_month": await self._count(Smell, Smell.created_at >= month_ago),
                "content_creation_rate": round(smells_this_week / 7, 2),
            },
            "growth": {
                "users_this_week": users_this_week,
                "users_this_month": users_this_month,
                "user_growth_rate": round(users_this_week / users_this_month * 100, 2) if users_this_month else 0.0,
            },
            "activity": {
                "total_favorites": await self._count(Favorite),
                "total_progress": await self._count(Progress),
                "total_activities": await self._count(UserActivity),
                "hourly_activity": hourly,
            },
        }
