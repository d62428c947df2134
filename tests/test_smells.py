"""
Tests for smell listing, reads, mutations and bulk actions.
"""
from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from conftest import auth_headers, count_rows
from models.models import Smell, Favorite, Progress, DifficultyLevelEnum, SmellCategoryEnum
from services.smell_mutation_service import SmellMutationService


def seed_three(make_smell):
    make_smell("God Function", difficulty=DifficultyLevelEnum.HARD)
    make_smell("Magic Numbers", difficulty=DifficultyLevelEnum.BEGINNER, tags="constants,readability")
    make_smell("Duplicate Logic", difficulty=DifficultyLevelEnum.MEDIUM,
               category=SmellCategoryEnum.MAINTAINABILITY)


def titles(response):
    return [smell["title"] for smell in response.json()["smells"]]


def test_sort_by_difficulty_uses_level_order(client, make_smell):
    seed_three(make_smell)

    response = client.get("/smells", params={"sortBy": "difficulty", "sortOrder": "asc", "limit": 2})

    assert response.status_code == 200
    body = response.json()
    assert titles(response) == ["Magic Numbers", "Duplicate Logic"]
    assert body["total"] == 3
    assert body["page"] == 1
    assert body["limit"] == 2


def test_pages_cover_every_match_once(client, make_smell):
    seed_three(make_smell)

    first = client.get("/smells", params={"sortBy": "difficulty", "sortOrder": "desc", "limit": 2})
    second = client.get("/smells", params={"sortBy": "difficulty", "sortOrder": "desc", "limit": 2, "offset": 2})

    assert titles(first) == ["God Function", "Duplicate Logic"]
    assert titles(second) == ["Magic Numbers"]
    assert second.json()["page"] == 2
    assert len(titles(first)) + len(titles(second)) == first.json()["total"]


def test_default_listing_is_newest_first_and_published_only(client, make_smell):
    seed_three(make_smell)
    make_smell("Hidden Draft", is_published=False)

    response = client.get("/smells")

    assert titles(response) == ["Duplicate Logic", "Magic Numbers", "God Function"]
    assert response.json()["total"] == 3


def test_search_and_filters(client, make_smell):
    seed_three(make_smell)

    by_tag = client.get("/smells", params={"search": "READABILITY"})
    by_category = client.get("/smells", params={"category": "MAINTAINABILITY"})
    by_difficulty = client.get("/smells", params=[("difficulty", "HARD"), ("difficulty", "BEGINNER")])
    wildcard = client.get("/smells", params={"search": "%"})

    assert titles(by_tag) == ["Magic Numbers"]
    assert titles(by_category) == ["Duplicate Logic"]
    assert sorted(titles(by_difficulty)) == ["God Function", "Magic Numbers"]
    assert wildcard.json()["total"] == 0


def test_sort_by_popularity_counts_favorites(client, make_smell, make_user, relate):
    seed = [make_smell(title) for title in ("First", "Second", "Third")]
    fans = [make_user(), make_user()]
    relate(fans[0], seed[0])
    relate(fans[0], seed[2])
    relate(fans[1], seed[2])

    response = client.get("/smells", params={"sortBy": "popularity", "sortOrder": "desc"})

    assert titles(response) == ["Third", "First", "Second"]
    assert response.json()["smells"][0]["favoritesCount"] == 2


def test_drafts_need_moderator(client, make_smell, member, moderator):
    make_smell("Published")
    draft = make_smell("Draft", is_published=False)

    assert client.get("/smells", params={"status": "all"}).status_code == 403
    assert client.get("/smells", params={"status": "draft"}, headers=auth_headers(member)).status_code == 403
    assert client.get(f"/smells/{draft.id}").status_code == 404

    drafts = client.get("/smells", params={"status": "draft"}, headers=auth_headers(moderator))
    assert titles(drafts) == ["Draft"]
    assert client.get(f"/smells/{draft.id}", headers=auth_headers(moderator)).status_code == 200


def test_invalid_token_is_rejected_even_on_public_routes(client, make_smell):
    make_smell("Published")
    response = client.get("/smells", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_get_smell_includes_counts(client, make_smell, member, relate):
    smell = make_smell("Counted")
    relate(member, smell)
    relate(member, smell, model=Progress, completed=True)

    response = client.get(f"/smells/{smell.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["favoritesCount"] == 1
    assert body["progressCount"] == 1
    assert body["badCode"] == "x = 1"
    assert client.get("/smells/99999").status_code == 404


def smell_payload(**overrides):
    payload = {
        "title": "Long Method",
        "category": "CODE_SMELL",
        "description": "A method that keeps growing.",
        "badCode": "def f():\n    ...",
        "goodCode": "def g():\n    ...",
        "difficulty": "EASY",
    }
    payload.update(overrides)
    return payload


def test_create_smell_defaults_to_draft(client, moderator):
    response = client.post("/smells", json=smell_payload(), headers=auth_headers(moderator))

    assert response.status_code == 201
    body = response.json()
    assert body["isPublished"] is False
    assert body["favoritesCount"] == 0
    assert body["testHint"] == ""


def test_create_smell_requires_moderator(client, member):
    assert client.post("/smells", json=smell_payload()).status_code == 401
    assert client.post("/smells", json=smell_payload(), headers=auth_headers(member)).status_code == 403


def test_duplicate_title_conflicts(client, sync_engine, moderator, make_smell):
    make_smell("Long Method")

    response = client.post("/smells", json=smell_payload(), headers=auth_headers(moderator))

    assert response.status_code == 409
    assert response.json()["error"]["field"] == "title"
    assert count_rows(sync_engine, Smell) == 1


def test_create_rejects_blank_and_unknown_values(client, moderator):
    blank = client.post("/smells", json=smell_payload(title="   "), headers=auth_headers(moderator))
    bad_category = client.post("/smells", json=smell_payload(category="NOPE"), headers=auth_headers(moderator))

    assert blank.status_code == 400
    assert blank.json()["error"]["field"] == "title"
    assert bad_category.status_code == 400


def test_partial_update(client, moderator, make_smell):
    smell = make_smell("Editable", difficulty=DifficultyLevelEnum.EASY)
    other = make_smell("Taken")

    response = client.patch(f"/smells/{smell.id}", json={"difficulty": "EXPERT"}, headers=auth_headers(moderator))
    assert response.status_code == 200
    assert response.json()["difficulty"] == "EXPERT"
    assert response.json()["title"] == "Editable"

    conflict = client.patch(f"/smells/{smell.id}", json={"title": other.title}, headers=auth_headers(moderator))
    assert conflict.status_code == 409

    nulled = client.patch(f"/smells/{smell.id}", json={"title": None}, headers=auth_headers(moderator))
    assert nulled.status_code == 400

    missing = client.patch("/smells/99999", json={"tags": "x"}, headers=auth_headers(moderator))
    assert missing.status_code == 404


def test_delete_smell_cascades_relations(client, sync_engine, moderator, member, make_smell, relate):
    smell = make_smell("Doomed")
    relate(member, smell)
    relate(member, smell, model=Progress)

    response = client.delete(f"/smells/{smell.id}", headers=auth_headers(moderator))

    assert response.status_code == 200
    assert response.json()["success"] is True
    assert count_rows(sync_engine, Favorite, Favorite.smell_id == smell.id) == 0
    assert count_rows(sync_engine, Progress, Progress.smell_id == smell.id) == 0
    assert client.get(f"/smells/{smell.id}").status_code == 404
    assert client.delete(f"/smells/{smell.id}", headers=auth_headers(moderator)).status_code == 404


def test_bulk_publish_skips_missing_ids(client, sync_engine, moderator, make_smell):
    draft = make_smell("Draft", is_published=False)

    response = client.post(
        "/smells/bulk",
        json={"action": "publish", "smellIds": [draft.id, 99999]},
        headers=auth_headers(moderator),
    )

    assert response.status_code == 200
    assert response.json() == {"success": True, "affectedCount": 1, "action": "publish"}
    with Session(sync_engine) as session:
        assert session.execute(select(Smell.is_published).where(Smell.id == draft.id)).scalar_one() is True


def test_bulk_change_category_and_delete(client, sync_engine, moderator, make_smell):
    smells = [make_smell("One"), make_smell("Two")]
    ids = [smell.id for smell in smells]

    missing_category = client.post("/smells/bulk", json={"action": "changeCategory", "smellIds": ids},
                                   headers=auth_headers(moderator))
    assert missing_category.status_code == 400

    changed = client.post(
        "/smells/bulk",
        json={"action": "changeCategory", "smellIds": ids, "data": {"category": "SECURITY"}},
        headers=auth_headers(moderator),
    )
    assert changed.json()["affectedCount"] == 2
    assert count_rows(sync_engine, Smell, Smell.category == SmellCategoryEnum.SECURITY) == 2

    deleted = client.post("/smells/bulk", json={"action": "delete", "smellIds": ids}, headers=auth_headers(moderator))
    assert deleted.json()["affectedCount"] == 2
    assert count_rows(sync_engine, Smell) == 0


def test_bulk_requires_ids(client, moderator):
    response = client.post("/smells/bulk", json={"action": "publish", "smellIds": []}, headers=auth_headers(moderator))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "No smells selected"


def test_admin_listing_pages(client, moderator, make_smell):
    for index in range(3):
        make_smell(f"Smell {index}", is_published=index != 0)

    response = client.get("/admin/smells", params={"page": 2, "limit": 2}, headers=auth_headers(moderator))

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 3
    assert body["totalPages"] == 2
    assert body["page"] == 2
    assert len(body["smells"]) == 1


def test_difficulty_ascending_follows_level_rank(client, make_smell):
    for level in (DifficultyLevelEnum.MEDIUM, DifficultyLevelEnum.EXPERT, DifficultyLevelEnum.BEGINNER,
                  DifficultyLevelEnum.HARD, DifficultyLevelEnum.EASY):
        make_smell(f"Level {level.value}", difficulty=level)

    response = client.get("/smells", params={"sortBy": "difficulty", "sortOrder": "asc"})

    assert [smell["difficulty"] for smell in response.json()["smells"]] == [
        "BEGINNER", "EASY", "MEDIUM", "HARD", "EXPERT"
    ]


def test_repeated_page_requests_are_identical(client, make_smell, make_user, relate):
    smells = [make_smell(f"Smell {index}") for index in range(4)]
    relate(make_user(), smells[1])
    params = {"sortBy": "popularity", "sortOrder": "desc", "limit": 2, "offset": 2}

    assert client.get("/smells", params=params).json() == client.get("/smells", params=params).json()


def test_update_after_concurrent_delete_is_not_found(client, sync_engine, monkeypatch, moderator, make_smell):
    smell = make_smell("Vanishing")

    async def title_free_but_smell_deleted(self, title, exclude_id=None):
        with Session(sync_engine) as session:
            session.execute(delete(Smell).where(Smell.id == smell.id))
            session.commit()
        return False

    monkeypatch.setattr(SmellMutationService, "_title_taken", title_free_but_smell_deleted)

    response = client.patch(f"/smells/{smell.id}", json={"title": "Renamed"}, headers=auth_headers(moderator))

    assert response.status_code == 404
    assert count_rows(sync_engine, Smell) == 0
