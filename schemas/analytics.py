"""
Pydantic schemas for admin analytics responses.
"""
import enum
from datetime import datetime
from typing import Dict, List, Optional
from schemas.common import CamelModel


class TimeRange(str, enum.Enum):
    week = "7d"
    month = "30d"
    quarter = "90d"
    year = "1y"


class DailyCount(CamelModel):
    date: str  # YYYY-MM-DD (UTC)
    count: int


class HourlyCount(CamelModel):
    hour: int
    count: int


class AdminStats(CamelModel):
    total_smells: int
    published_smells: int
    draft_smells: int
    total_users: int
    active_users: int
    total_favorites: int
    total_progress: int
    recent_activity: int


class PopularSmell(CamelModel):
    id: int
    title: str
    favorites: int
    progress: int


class CategoryEngagement(CamelModel):
    favorites: int = 0
    progress: int = 0


class SmellAnalytics(CamelModel):
    smells_by_category: Dict[str, int]
    smells_by_difficulty: Dict[str, int]
    popular_smells: List[PopularSmell]
    smells_over_time: List[DailyCount]
    published_smells: int
    draft_smells: int
    category_stats: Dict[str, CategoryEngagement]


class TopUser(CamelModel):
    id: int
    name: str
    email: str
    favorites_count: int
    progress_count: int
    activities_count: int
    last_active: Optional[datetime] = None


class UserAnalytics(CamelModel):
    total_users: int
    active_users: int
    new_users_this_month: int
    user_growth_rate: float
    users_by_role: Dict[str, int]
    top_users: List[TopUser]
    activity_data: List[DailyCount]


class EngagementMetrics(CamelModel):
    total_users: int
    active_users: int
    recent_activity: int
    user_engagement_rate: float


class ContentMetrics(CamelModel):
    total_smells: int
    smells_this_week: int
    smells_this_month: int
    content_creation_rate: float


class GrowthMetrics(CamelModel):
    users_this_week: int
    users_this_month: int
    user_growth_rate: float


class ActivityMetrics(CamelModel):
    total_favorites: int
    total_progress: int
    total_activities: int
    hourly_activity: List[HourlyCount]


class HostMetrics(CamelModel):
    cpu_percent: float
    memory_percent: float
    disk_percent: float
    process_memory_mb: float
    uptime_seconds: float


class SystemAnalytics(CamelModel):
    performance: HostMetrics
    engagement: EngagementMetrics
    content: ContentMetrics
    growth: GrowthMetrics
    activity: ActivityMetrics
