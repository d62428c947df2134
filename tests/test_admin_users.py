"""
Tests for admin user management and role rules.
"""
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import auth_headers, count_rows
from models.models import User, UserRoleEnum


def role_of(engine, user):
    with Session(engine) as session:
        return session.execute(select(User.role).where(User.id == user.id)).scalar_one()


def test_list_users_with_counts_and_paging(client, admin, moderator, member, make_smell, relate):
    relate(member, make_smell("Liked"))

    response = client.get("/admin/users", params={"limit": 2, "sortBy": "email", "sortOrder": "asc"},
                          headers=auth_headers(moderator))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert [user["email"] for user in body["users"]] == ["admin@example.com", "member@example.com"]
    assert body["users"][1]["favoritesCount"] == 1


def test_list_users_filters(client, admin, moderator, member):
    by_role = client.get("/admin/users", params={"role": "MODERATOR"}, headers=auth_headers(admin))
    by_search = client.get("/admin/users", params={"search": "MEMB"}, headers=auth_headers(admin))

    assert [user["email"] for user in by_role.json()["users"]] == ["moderator@example.com"]
    assert [user["email"] for user in by_search.json()["users"]] == ["member@example.com"]


def test_admin_routes_reject_plain_users(client, member):
    assert client.get("/admin/users", headers=auth_headers(member)).status_code == 403
    assert client.get("/admin/users").status_code == 401


def test_get_user(client, moderator, member):
    response = client.get(f"/admin/users/{member.id}", headers=auth_headers(moderator))

    assert response.status_code == 200
    assert response.json()["role"] == "USER"
    assert client.get("/admin/users/99999", headers=auth_headers(moderator)).status_code == 404


def test_moderator_can_edit_but_not_change_roles(client, sync_engine, moderator, member):
    edited = client.patch(f"/admin/users/{member.id}", json={"bio": "Edited"}, headers=auth_headers(moderator))
    promoted = client.patch(f"/admin/users/{member.id}", json={"role": "ADMIN"}, headers=auth_headers(moderator))

    assert edited.status_code == 200
    assert edited.json()["bio"] == "Edited"
    assert promoted.status_code == 403
    assert role_of(sync_engine, member) == UserRoleEnum.USER


def test_admin_changes_roles_but_not_own(client, sync_engine, admin, member):
    promoted = client.patch(f"/admin/users/{member.id}", json={"role": "MODERATOR"}, headers=auth_headers(admin))
    own = client.patch(f"/admin/users/{admin.id}", json={"role": "USER"}, headers=auth_headers(admin))

    assert promoted.status_code == 200
    assert promoted.json()["role"] == "MODERATOR"
    assert own.status_code == 400
    assert role_of(sync_engine, admin) == UserRoleEnum.ADMIN


def test_email_change_conflicts(client, admin, moderator, member):
    response = client.patch(f"/admin/users/{member.id}", json={"email": "Moderator@Example.com"},
                            headers=auth_headers(admin))

    assert response.status_code == 409
    assert response.json()["error"]["field"] == "email"


def test_delete_user_rules(client, sync_engine, admin, moderator, member):
    assert client.delete(f"/admin/users/{member.id}", headers=auth_headers(moderator)).status_code == 403
    assert client.delete(f"/admin/users/{admin.id}", headers=auth_headers(admin)).status_code == 400

    response = client.delete(f"/admin/users/{member.id}", headers=auth_headers(admin))

    assert response.status_code == 200
    assert count_rows(sync_engine, User, User.id == member.id) == 0
    assert client.delete(f"/admin/users/{member.id}", headers=auth_headers(admin)).status_code == 404


def test_bulk_demotion_skips_acting_admin(client, sync_engine, admin, moderator, member):
    response = client.post(
        "/admin/users/bulk",
        json={"action": "makeUser", "userIds": [admin.id, moderator.id, 99999]},
        headers=auth_headers(admin),
    )

    assert response.status_code == 200
    assert response.json()["affectedCount"] == 1
    assert role_of(sync_engine, admin) == UserRoleEnum.ADMIN
    assert role_of(sync_engine, moderator) == UserRoleEnum.USER


def test_bulk_delete_and_validation(client, sync_engine, admin, make_user):
    victims = [make_user(), make_user()]

    empty = client.post("/admin/users/bulk", json={"action": "delete", "userIds": []}, headers=auth_headers(admin))
    deleted = client.post(
        "/admin/users/bulk",
        json={"action": "delete", "userIds": [victim.id for victim in victims] + [admin.id]},
        headers=auth_headers(admin),
    )

    assert empty.status_code == 400
    assert deleted.json()["affectedCount"] == 2
    assert count_rows(sync_engine, User) == 1


def test_bulk_requires_admin(client, moderator, member):
    response = client.post("/admin/users/bulk", json={"action": "makeAdmin", "userIds": [member.id]},
                           headers=auth_headers(moderator))
    assert response.status_code == 403
