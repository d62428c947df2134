"""
Tests for identity-provider sign-in, role checks and health probes.
"""
from datetime import datetime, timedelta, timezone

from jose import jwt

from conftest import auth_headers, count_rows
from core.config import settings
from models.models import User, UserActivity, UserRoleEnum


def identity_token(secret=None, **claims):
    payload = {
        "aud": settings.identity_token_audience,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
    }
    payload.update(claims)
    return jwt.encode(payload, secret or settings.identity_token_secret, algorithm=settings.jwt_algorithm)


def test_first_sign_in_provisions_user(client, sync_engine):
    token = identity_token(email="New.Person@Example.com", name="New Person", picture="https://img.example.com/a.png")

    response = client.post("/auth/signin", json={"idToken": token})

    assert response.status_code == 200
    body = response.json()
    assert body["tokenType"] == "bearer"
    assert body["user"]["email"] == "new.person@example.com"
    assert body["user"]["role"] == "USER"
    assert body["user"]["image"] == "https://img.example.com/a.png"
    assert count_rows(sync_engine, UserActivity, UserActivity.action == "sign_in") == 1

    role = client.get("/auth/check-role", headers={"Authorization": f"Bearer {body['accessToken']}"})
    assert role.json() == {"isAdmin": False, "isModerator": False, "userId": body["user"]["id"]}


def test_repeat_sign_in_reuses_account(client, sync_engine, member):
    token = identity_token(email="MEMBER@example.com", name="Member Renamed")

    response = client.post("/auth/signin", json={"idToken": token})

    assert response.status_code == 200
    assert response.json()["user"]["id"] == member.id
    assert response.json()["user"]["name"] == "Member Renamed"
    assert count_rows(sync_engine, User) == 1


def test_sign_in_rejects_bad_tokens(client):
    forged = identity_token(secret="not-the-secret", email="x@example.com")
    wrong_audience = identity_token(email="x@example.com", aud="someone-else")
    no_email = identity_token(name="Nobody")

    for token in (forged, wrong_audience, no_email, "garbage"):
        assert client.post("/auth/signin", json={"idToken": token}).status_code == 401


def test_check_role_for_moderator(client, moderator):
    response = client.get("/auth/check-role", headers=auth_headers(moderator))
    assert response.json() == {"isAdmin": False, "isModerator": True, "userId": moderator.id}


def test_role_change_applies_to_existing_tokens(client, db, member):
    headers = auth_headers(member)
    assert client.get("/admin/stats", headers=headers).status_code == 403

    member.role = UserRoleEnum.MODERATOR
    db.commit()

    assert client.get("/admin/stats", headers=headers).status_code == 200


def test_check_role_requires_token(client):
    assert client.get("/auth/check-role").status_code == 401


def test_health_probes(client):
    basic = client.get("/health")
    database = client.get("/health/database")
    system = client.get("/health/system")

    assert basic.status_code == 200
    assert basic.json()["status"] == "ok"
    assert database.status_code == 200
    assert database.json()["status"] == "healthy"
    assert system.status_code == 200
    assert "cpu_percent" in system.json()


def test_security_headers_and_request_id(client):
    response = client.get("/health")

    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Request-ID" in response.headers
