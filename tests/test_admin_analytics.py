"""
Tests for the admin dashboard statistics and analytics.
"""
from datetime import datetime, timedelta, timezone

from conftest import auth_headers
from models.models import Progress, UserActivity, SmellCategoryEnum, DifficultyLevelEnum
from services.analytics_service import month_start


def test_stats_overview(client, moderator, member, make_smell, relate):
    liked = make_smell("Liked")
    make_smell("Draft", is_published=False)
    relate(member, liked)
    relate(member, liked, model=Progress)

    response = client.get("/admin/stats", headers=auth_headers(moderator))

    assert response.status_code == 200
    assert response.json() == {
        "totalSmells": 2,
        "publishedSmells": 1,
        "draftSmells": 1,
        "totalUsers": 2,
        "activeUsers": 2,
        "totalFavorites": 1,
        "totalProgress": 1,
        "recentActivity": 0,
    }


def test_analytics_require_moderator(client, member):
    for path in ("/admin/stats", "/admin/users/analytics", "/admin/analytics/smells", "/admin/analytics/system"):
        assert client.get(path, headers=auth_headers(member)).status_code == 403


def test_smell_analytics_week_has_eight_days(client, admin, make_user, make_smell, relate):
    now = datetime.now(timezone.utc)
    popular = make_smell("Popular", category=SmellCategoryEnum.SECURITY, created_at=now)
    quiet = make_smell("Quiet", difficulty=DifficultyLevelEnum.EXPERT, created_at=now - timedelta(days=60))
    fans = [make_user(), make_user()]
    for fan in fans:
        relate(fan, popular)
    relate(fans[0], quiet, model=Progress)

    response = client.get("/admin/analytics/smells", params={"timeRange": "7d"}, headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    series = body["smellsOverTime"]
    assert len(series) == 8
    assert series[-1] == {"date": now.date().isoformat(), "count": 1}
    assert sum(day["count"] for day in series) == 1
    assert [smell["title"] for smell in body["popularSmells"]] == ["Popular", "Quiet"]
    assert body["popularSmells"][0]["favorites"] == 2
    assert body["smellsByCategory"] == {"SECURITY": 1, "CODE_SMELL": 1}
    assert body["smellsByDifficulty"]["EXPERT"] == 1
    assert body["categoryStats"]["SECURITY"] == {"favorites": 2, "progress": 0}


def test_smell_analytics_rejects_unknown_range(client, admin):
    response = client.get("/admin/analytics/smells", params={"timeRange": "2w"}, headers=auth_headers(admin))
    assert response.status_code == 400


def test_user_analytics(client, db, admin, member, make_user):
    make_user(name=None)
    db.add_all([
        UserActivity(user_id=member.id, action="sign_in"),
        UserActivity(user_id=member.id, action="favorite_added"),
        UserActivity(user_id=admin.id, action="sign_in"),
    ])
    db.commit()

    response = client.get("/admin/users/analytics", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["totalUsers"] == 3
    assert body["newUsersThisMonth"] == 3
    assert body["usersByRole"] == {"ADMIN": 1, "USER": 2}
    assert len(body["activityData"]) == 30
    assert body["activityData"][-1]["count"] == 3
    top = body["topUsers"]
    assert top[0]["email"] == "member@example.com"
    assert top[0]["activitiesCount"] == 2
    assert top[-1]["name"] == "No Name"


def test_system_analytics_shape(client, db, admin):
    db.add(UserActivity(user_id=admin.id, action="sign_in"))
    db.commit()

    response = client.get("/admin/analytics/system", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"performance", "engagement", "content", "growth", "activity"}
    hourly = body["activity"]["hourlyActivity"]
    assert [bucket["hour"] for bucket in hourly] == list(range(24))
    assert sum(bucket["count"] for bucket in hourly) == 1
    assert body["engagement"]["totalUsers"] == 1
    assert body["engagement"]["userEngagementRate"] == 100.0
    assert "cpuPercent" in body["performance"]


def test_popular_smells_break_favorite_ties_by_progress(client, admin, make_user, make_smell, relate):
    earlier = make_smell("Earlier")
    later = make_smell("Later")
    fan, learner = make_user(), make_user()
    relate(fan, earlier)
    relate(fan, later)
    relate(learner, later, model=Progress)

    response = client.get("/admin/analytics/smells", headers=auth_headers(admin))

    popular = response.json()["popularSmells"]
    assert [smell["title"] for smell in popular] == ["Later", "Earlier"]
    assert [(smell["favorites"], smell["progress"]) for smell in popular] == [(1, 1), (1, 0)]


def test_user_growth_rate_against_last_month(client, admin, make_user):
    last_month = month_start(datetime.now(timezone.utc), months_back=1) + timedelta(days=1)
    for _ in range(4):
        make_user(created_at=last_month)

    response = client.get("/admin/users/analytics", headers=auth_headers(admin))

    assert response.status_code == 200
    body = response.json()
    assert body["newUsersThisMonth"] == 1
    assert body["userGrowthRate"] == -75.0
