from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

from gym_arena.api.dependencies import get_db
from gym_arena.core.security import create_access_token
from gym_arena.main import app
from gym_arena.services import gamification_service


def auth_headers(user_id, role=None):
    claims = {"sub": user_id}
    if role:
        claims["role"] = role
    return {"Authorization": f"Bearer {create_access_token(claims)}"}


ADMIN_HEADERS = auth_headers("admin-1", role="admin")


# --- Test Client Fixture ---
@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def create_tournament(client, max_participants=4, headers=ADMIN_HEADERS):
    return client.post(
        "/tournaments/",
        json={
            "name": "Friday Night Finals",
            "start_date": (datetime.utcnow() + timedelta(days=2)).isoformat(),
            "max_participants": max_participants,
        },
        headers=headers,
    )


def started_tournament(client, max_participants=4):
    tournament_id = create_tournament(client, max_participants).json()["id"]
    for i in range(1, max_participants + 1):
        assert client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers(f"player-{i}")).status_code == 201
    assert client.post(f"/tournaments/{tournament_id}/start", headers=ADMIN_HEADERS).status_code == 200
    return tournament_id


def bracket_match(client, tournament_id, round_number, match_number):
    bracket = client.get(f"/tournaments/{tournament_id}/bracket").json()
    return bracket["rounds"][round_number - 1]["matches"][match_number - 1]


class TestTournamentRoutes:

    def test_root(self, client):
        assert client.get("/").json() == {"message": "Gym Arena API"}

    def test_create_tournament(self, client):
        response = create_tournament(client, 8)
        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "upcoming"
        assert data["created_by"] == "admin-1"
        assert data["participant_count"] == 0
        assert data["total_rounds"] == 3

    def test_create_requires_token(self, client):
        assert create_tournament(client, headers={}).status_code == 401

    def test_create_rejects_bad_token(self, client):
        assert create_tournament(client, headers={"Authorization": "Bearer not-a-jwt"}).status_code == 401

    def test_members_cannot_create(self, client):
        assert create_tournament(client, headers=auth_headers("member-1")).status_code == 403

    def test_create_rejects_unsupported_size(self, client):
        assert create_tournament(client, 6).status_code == 422

    def test_list_and_get(self, client):
        tournament_id = create_tournament(client).json()["id"]
        client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers("player-1"))

        listed = client.get("/tournaments/", params={"status": "upcoming"}).json()
        assert [(t["id"], t["participant_count"]) for t in listed] == [(tournament_id, 1)]
        assert client.get("/tournaments/", params={"status": "active"}).json() == []
        assert client.get(f"/tournaments/{tournament_id}").json()["participant_count"] == 1

    def test_get_unknown_tournament(self, client):
        assert client.get("/tournaments/missing").status_code == 404
        assert client.get("/tournaments/missing/bracket").status_code == 404

    def test_join_assigns_seeds(self, client):
        tournament_id = create_tournament(client).json()["id"]
        first = client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers("ana"))
        second = client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers("ben"))
        assert (first.json()["seed_number"], second.json()["seed_number"]) == (1, 2)

        again = client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers("ana"))
        assert again.status_code == 400

        participants = client.get(f"/tournaments/{tournament_id}/participants").json()
        assert [p["user_id"] for p in participants] == ["ana", "ben"]

    def test_start_needs_full_bracket(self, client):
        tournament_id = create_tournament(client).json()["id"]
        client.post(f"/tournaments/{tournament_id}/join", headers=auth_headers("ana"))
        response = client.post(f"/tournaments/{tournament_id}/start", headers=ADMIN_HEADERS)
        assert response.status_code == 400

    def test_bracket_is_public(self, client):
        tournament_id = started_tournament(client)
        bracket = client.get(f"/tournaments/{tournament_id}/bracket").json()
        assert [r["name"] for r in bracket["rounds"]] == ["Semi-Final", "Final"]
        first = bracket["rounds"][0]["matches"][0]
        assert (first["player_1"]["id"], first["player_2"]["id"]) == ("player-1", "player-2")
        assert first["state"] == "PENDING"

    def test_repair_reports_filled_slots(self, client):
        tournament_id = started_tournament(client)
        response = client.post(f"/tournaments/{tournament_id}/repair", headers=ADMIN_HEADERS)
        assert response.json() == {"tournament_id": tournament_id, "slots_filled": 0}
        assert client.post(f"/tournaments/{tournament_id}/repair", headers=auth_headers("player-1")).status_code == 403


class TestMatchRoutes:

    def test_play_to_champion(self, client):
        tournament_id = started_tournament(client)
        for match_number, winner in ((1, "player-2"), (2, "player-3")):
            match = bracket_match(client, tournament_id, 1, match_number)
            response = client.post(f"/matches/{match['id']}/winner", json={"winner_id": winner}, headers=ADMIN_HEADERS)
            assert response.status_code == 200
            assert response.json()["state"] == "COMPLETE"

        final = bracket_match(client, tournament_id, 2, 1)
        assert (final["player_1_id"], final["player_2_id"]) == ("player-2", "player-3")
        client.post(f"/matches/{final['id']}/winner", json={"winner_id": "player-3"}, headers=ADMIN_HEADERS)

        bracket = client.get(f"/tournaments/{tournament_id}/bracket").json()
        assert bracket["champion"]["id"] == "player-3"
        assert bracket["tournament"]["status"] == "completed"

    def test_result_errors(self, client):
        tournament_id = started_tournament(client)
        match = bracket_match(client, tournament_id, 1, 1)
        url = f"/matches/{match['id']}/winner"

        assert client.post(url, json={"winner_id": "player-1"}, headers=auth_headers("player-1")).status_code == 403
        assert client.post(url, json={"winner_id": "player-4"}, headers=ADMIN_HEADERS).status_code == 400
        assert client.post(url, json={"winner_id": "player-1"}, headers=ADMIN_HEADERS).status_code == 200
        assert client.post(url, json={"winner_id": "player-2"}, headers=ADMIN_HEADERS).status_code == 409
        assert client.post("/matches/missing/winner", json={"winner_id": "x"}, headers=ADMIN_HEADERS).status_code == 404

    def test_predictions_and_summary(self, client):
        tournament_id = started_tournament(client)
        match = bracket_match(client, tournament_id, 1, 1)
        fan = auth_headers("fan-1")

        response = client.put(f"/matches/{match['id']}/prediction", json={"predicted_winner_id": "player-1"}, headers=fan)
        assert response.status_code == 200
        assert response.json()["predicted_winner_id"] == "player-1"
        bad = client.put(f"/matches/{match['id']}/prediction", json={"predicted_winner_id": "player-3"}, headers=fan)
        assert bad.status_code == 400

        client.post(f"/matches/{match['id']}/winner", json={"winner_id": "player-1"}, headers=ADMIN_HEADERS)

        summary = client.get("/predictions/me", params={"tournament_id": tournament_id}, headers=fan).json()
        assert (summary["total"], summary["correct"], summary["accuracy"]) == (1, 1, 100.0)
        listed = client.get("/predictions/me/list", headers=fan).json()
        assert [p["match_id"] for p in listed] == [match["id"]]

        viewer_bracket = client.get(f"/tournaments/{tournament_id}/bracket", headers=fan).json()
        assert viewer_bracket["predictions"] == [{"match_id": match["id"], "predicted_winner_id": "player-1"}]


class TestGamificationRoutes:

    def test_award_and_progress(self, client):
        headers = auth_headers("user-1")
        response = client.post("/gamification/xp", json={"amount": 50, "source": "VIDEO_COMPLETED"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["stats"]["current_xp"] == 50

        progress = client.get("/gamification/me", headers=headers).json()
        assert progress["stats"]["total_xp_earned"] == 50
        assert client.get("/gamification/levels").json() == []

    def test_award_rejects_non_positive(self, client):
        response = client.post("/gamification/xp", json={"amount": 0, "source": "x"}, headers=auth_headers("user-1"))
        assert response.status_code == 422

    def test_catalogue_and_trophy_case(self, client, session_factory):
        db = session_factory()
        try:
            gamification_service.seed_catalogue(db)
        finally:
            db.close()
        headers = auth_headers("user-1")

        catalogue = client.get("/gamification/achievements").json()
        assert len(catalogue) == len(gamification_service.DEFAULT_ACHIEVEMENTS)
        assert client.get("/gamification/me/achievements", headers=headers).json() == []

        unlocked = client.post(
            "/gamification/achievements/check",
            json={"condition_type": "posts_created", "value": 1},
            headers=headers,
        ).json()["unlocked"]
        assert [a["name"] for a in unlocked] == ["First Post"]

        trophies = client.get("/gamification/me/achievements", headers=headers).json()
        assert [t["achievement"]["name"] for t in trophies] == ["First Post"]
        assert trophies[0]["unlocked_at"] is not None

    def test_trophy_case_requires_token(self, client):
        assert client.get("/gamification/me/achievements").status_code == 401

    def test_check_achievements_without_catalogue(self, client):
        response = client.post(
            "/gamification/achievements/check",
            json={"condition_type": "posts_created", "value": 3},
            headers=auth_headers("user-1"),
        )
        assert response.json() == {"unlocked": []}
