from datetime import datetime, timedelta, timezone

import pytest

from quiz_service.models import QuizSession


def test_list_only_available_epics(client, make_epic):
    make_epic("ramayana")
    make_epic("mahabharata", is_available=False)

    r = client.get("/epics")
    assert r.status_code == 200
    body = r.json()
    assert [e["id"] for e in body["data"]] == ["ramayana"]
    assert body["meta"]["total"] == 1

    r = client.get("/epics", params={"include_unavailable": True})
    assert {e["id"] for e in r.json()["data"]} == {"ramayana", "mahabharata"}


def test_get_epic(client, make_epic):
    make_epic("ramayana", title="THE RAMAYANA", culture="Hindu")
    r = client.get("/epics/ramayana")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["title"] == "THE RAMAYANA"
    assert data["is_available"] is True


def test_get_unknown_epic(client):
    r = client.get("/epics/odyssey")
    assert r.status_code == 404
    body = r.json()
    assert body["success"] is False
    assert body["error"] == "Epic not found"
    assert "odyssey" in body["message"]


def test_epic_stats(client, make_epic, make_question):
    make_epic()
    make_question(category="characters", difficulty="easy")
    make_question(category="characters", difficulty="hard")
    make_question(category="culture", difficulty="hard")

    r = client.get("/epics/ramayana/stats")
    data = r.json()["data"]
    assert data["total_questions"] == 3
    assert data["questions_by_category"] == {"characters": 2, "events": 0, "themes": 0, "culture": 1}
    assert data["questions_by_difficulty"] == {"easy": 1, "medium": 0, "hard": 2}


def test_epic_stats_unknown_epic(client):
    assert client.get("/epics/odyssey/stats").status_code == 404


def test_epic_stats_unknown_epic_uses_epic_error(client):
    assert client.get("/epics/odyssey/stats").json()["error"] == "Epic not found"


class TestSearch:
    def test_matches_title_description_and_culture(self, client, make_epic):
        old = datetime(2024, 1, 1, tzinfo=timezone.utc)
        make_epic("ramayana", title="THE RAMAYANA", description="Ancient Indian Epic", culture="Hindu")
        make_epic("iliad", title="THE ILIAD", description="Greek war poem", culture="Greek")
        make_epic("gilgamesh", title="EPIC OF GILGAMESH", description="Sumerian king", culture="Mesopotamian", created_at=old)
        make_epic("odyssey", title="THE ODYSSEY", description="Greek epic", culture="Greek", is_available=False)

        r = client.get("/epics/search", params={"q": "greek"})
        assert r.status_code == 200
        body = r.json()
        assert [e["id"] for e in body["data"]] == ["iliad"]
        assert body["meta"]["query"] == "greek"
        assert body["meta"]["count"] == 1

        # title hits first, then the rest newest first
        ids = [e["id"] for e in client.get("/epics/search", params={"q": "EPIC"}).json()["data"]]
        assert ids == ["gilgamesh", "ramayana"]

    def test_wildcards_are_literal(self, client, make_epic):
        make_epic("ramayana", title="THE RAMAYANA")
        assert client.get("/epics/search", params={"q": "%%"}).json()["data"] == []

    @pytest.mark.parametrize("q", ["a", "x" * 101])
    def test_query_length_is_validated(self, client, q):
        r = client.get("/epics/search", params={"q": q})
        assert r.status_code == 400
        assert r.json()["details"][0]["field"] == "q"

    def test_query_is_required(self, client):
        assert client.get("/epics/search").status_code == 400


class TestTrending:
    def test_orders_by_recent_sessions(self, client, db, make_epic):
        make_epic("ramayana")
        make_epic("iliad")
        make_epic("gilgamesh")
        make_epic("odyssey", is_available=False)
        now = datetime.now(timezone.utc)
        recent = now - timedelta(days=1)
        stale = now - timedelta(days=10)
        for epic_id, when in [
            ("iliad", recent), ("iliad", recent),
            ("ramayana", recent),
            ("gilgamesh", stale), ("gilgamesh", stale), ("gilgamesh", stale),
            ("odyssey", recent), ("odyssey", recent), ("odyssey", recent),
        ]:
            db.add(QuizSession(quiz_id="q", epic_id=epic_id, answers_json="[]", completed_at=when))
        db.commit()

        r = client.get("/epics/trending")
        assert r.status_code == 200
        body = r.json()
        assert [(e["id"], e["recent_sessions"]) for e in body["data"]] == [
            ("iliad", 2), ("ramayana", 1), ("gilgamesh", 0),
        ]
        assert body["meta"]["period"] == "7 days"

        limited = client.get("/epics/trending", params={"limit": 1}).json()
        assert [e["id"] for e in limited["data"]] == ["iliad"]
        assert limited["meta"]["count"] == 1

    def test_limit_is_validated(self, client):
        assert client.get("/epics/trending", params={"limit": 0}).status_code == 400

    def test_trending_is_not_taken_for_an_epic_id(self, client):
        assert client.get("/epics/trending").json()["success"] is True
