"""
HTTP surface: status codes, payload shapes and a full Swiss -> knockout walk through the API.
"""
from fastapi.testclient import TestClient
from sqlmodel import Session

from swiss_bracket.models.match import PHASE_SWISS, Match
from swiss_bracket.models.player import Player


def _register(client: TestClient, count: int, departments=(1, 2)) -> list[dict]:
    players = []
    for i in range(count):
        resp = client.post(
            "/api/players",
            json={"name": f"Player {i + 1}", "department_id": departments[i % len(departments)]},
        )
        assert resp.status_code == 201, resp.text
        players.append(resp.json())
    return players


def _open_matches(client: TestClient, phase: str) -> list[dict]:
    resp = client.get("/api/matches", params={"phase": phase})
    assert resp.status_code == 200
    return [m for m in resp.json() if m["player2_id"] is not None and m["winner_id"] is None]


def test_health(client: TestClient):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


class TestPlayers:
    def test_create_and_list(self, client: TestClient):
        resp = client.post("/api/players", json={"name": "  Ada ", "department_id": 4})
        assert resp.status_code == 201
        data = resp.json()
        assert data["name"] == "Ada"
        assert (data["points"], data["wins"], data["losses"]) == (0, 0, 0)

        listed = client.get("/api/players").json()
        assert [p["id"] for p in listed] == [data["id"]]

    def test_validation(self, client: TestClient):
        assert client.post("/api/players", json={"name": "", "department_id": 1}).status_code == 422
        assert client.post("/api/players", json={"name": "X", "department_id": 0}).status_code == 422
        assert client.post("/api/players", json={"name": "   ", "department_id": 1}).status_code == 400

    def test_delete_unreferenced_player(self, client: TestClient):
        player = _register(client, 1)[0]
        assert client.delete(f"/api/players/{player['id']}").status_code == 204
        assert client.get("/api/players").json() == []
        assert client.delete(f"/api/players/{player['id']}").status_code == 404

    def test_delete_referenced_player_refused(self, client: TestClient):
        players = _register(client, 4)
        client.post("/api/swiss/start")

        resp = client.delete(f"/api/players/{players[0]['id']}")
        assert resp.status_code == 400
        assert "referenced" in resp.json()["detail"]


class TestSwissRoutes:
    def test_start_needs_four_players(self, client: TestClient):
        _register(client, 3)
        resp = client.post("/api/swiss/start")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Minimum 4 players required (registered: 3)"
        assert client.get("/api/matches").json() == []

    def test_start_and_list_round_one(self, client: TestClient):
        _register(client, 5)
        resp = client.post("/api/swiss/start")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "CREATED"
        assert body["round_number"] == 1
        assert body["matches_created"] == 3
        assert body["bye_player_id"] is not None

        matches = client.get("/api/matches").json()
        assert len(matches) == 3
        bye = [m for m in matches if m["player2_id"] is None][0]
        assert bye["winner_id"] == body["bye_player_id"]
        assert bye["player1"]["id"] == body["bye_player_id"]
        assert bye["player2"] is None

        full = [m for m in matches if m["player2_id"] is not None][0]
        assert full["player1"]["name"].startswith("Player ")
        assert full["phase"] == PHASE_SWISS

    def test_next_before_start(self, client: TestClient):
        _register(client, 4)
        resp = client.post("/api/swiss/next")
        assert resp.status_code == 400

    def test_next_with_open_round(self, client: TestClient):
        _register(client, 4)
        client.post("/api/swiss/start")
        resp = client.post("/api/swiss/next")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ROUND_OPEN"

    def test_invalid_phase_filter(self, client: TestClient):
        assert client.get("/api/matches", params={"phase": "FINALS"}).status_code == 422


class TestMatchRoutes:
    def test_record_result(self, client: TestClient):
        _register(client, 4)
        client.post("/api/swiss/start")
        match = _open_matches(client, PHASE_SWISS)[0]

        resp = client.patch(f"/api/matches/{match['id']}", json={"winner_id": match["player2_id"]})
        assert resp.status_code == 200
        body = resp.json()
        assert body["match"]["winner_id"] == match["player2_id"]
        assert body["match"]["winner"]["id"] == match["player2_id"]
        assert body["advancement"]["status"] == "ROUND_OPEN"

        winner = client.get(f"/api/matches/{match['id']}").json()["winner_id"]
        assert winner == match["player2_id"]

        standings = {p["id"]: p for p in client.get("/api/players").json()}
        assert standings[match["player2_id"]]["points"] == 3
        assert standings[match["player1_id"]]["losses"] == 1

    def test_record_errors(self, client: TestClient):
        players = _register(client, 5)
        client.post("/api/swiss/start")
        matches = client.get("/api/matches").json()
        full = [m for m in matches if m["player2_id"] is not None][0]
        bye = [m for m in matches if m["player2_id"] is None][0]
        outsider = [p["id"] for p in players if p["id"] not in (full["player1_id"], full["player2_id"])][0]

        resp = client.patch(f"/api/matches/{full['id']}", json={"winner_id": outsider})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Winner must be one of the players in the match"

        resp = client.patch(f"/api/matches/{bye['id']}", json={"winner_id": bye["player1_id"]})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Cannot set winner on bye/TBA match"

        resp = client.patch("/api/matches/9999", json={"winner_id": full["player1_id"]})
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Match not found"

        assert client.patch(f"/api/matches/{full['id']}", json={"winner_id": 0}).status_code == 422
        assert client.patch(f"/api/matches/{full['id']}", json={}).status_code == 422
        assert client.get("/api/matches/9999").status_code == 404

    def test_delete_match(self, client: TestClient, session: Session):
        _register(client, 4)
        client.post("/api/swiss/start")
        match = _open_matches(client, PHASE_SWISS)[0]
        client.patch(f"/api/matches/{match['id']}", json={"winner_id": match["player1_id"]})

        resp = client.delete(f"/api/matches/{match['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "deleted_match_id": match["id"]}

        session.expire_all()
        assert session.get(Match, match["id"]) is None
        assert session.get(Player, match["player1_id"]).wins == 0
        assert client.delete(f"/api/matches/{match['id']}").status_code == 404


class TestTournamentFlow:
    def test_state_before_start(self, client: TestClient):
        _register(client, 2)
        state = client.get("/api/tournament/state").json()
        assert state["phase"] is None
        assert state["player_count"] == 2
        assert state["swiss_round"] is None

    def test_knockout_before_swiss_finished(self, client: TestClient):
        _register(client, 4)
        client.post("/api/swiss/start")
        resp = client.post("/api/knockout/start")
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Swiss is not finished yet"

    def test_full_tournament(self, client: TestClient):
        """Eight players, lower id always wins, through to a champion."""
        _register(client, 8, departments=(1, 2, 3, 4))
        assert client.post("/api/swiss/start").status_code == 200

        for _ in range(10):
            open_matches = _open_matches(client, PHASE_SWISS)
            if not open_matches:
                break
            for m in open_matches:
                winner = min(m["player1_id"], m["player2_id"])
                assert client.patch(f"/api/matches/{m['id']}", json={"winner_id": winner}).status_code == 200

        assert client.post("/api/swiss/next").json()["status"] == "STAGE_COMPLETE"
        state = client.get("/api/tournament/state").json()
        assert state["phase"] == PHASE_SWISS
        assert state["active_count"] <= 1

        players = client.get("/api/players").json()
        assert all(p["points"] == 3 * p["wins"] for p in players)

        # Keep calling start until the bracket exists (a last-chance round may come first)
        for _ in range(2):
            resp = client.post("/api/knockout/start")
            assert resp.status_code == 200, resp.text
            if resp.json()["status"] == "KNOCKOUT_CREATED":
                break
            for m in _open_matches(client, "LAST_CHANCE"):
                client.patch(f"/api/matches/{m['id']}", json={"winner_id": m["player1_id"]})
        assert resp.json()["status"] == "KNOCKOUT_CREATED"
        bracket_size = resp.json()["bracket_size"]

        for _ in range(6):
            open_matches = _open_matches(client, "KNOCKOUT")
            if not open_matches:
                break
            for m in open_matches:
                client.patch(f"/api/matches/{m['id']}", json={"winner_id": m["player1_id"]})

        bracket = client.get("/api/knockout/bracket").json()
        assert len(bracket["rounds"][0]["matches"]) == bracket_size // 2
        assert len(bracket["rounds"][-1]["matches"]) == 1
        assert bracket["champion_id"] == bracket["rounds"][-1]["matches"][0]["winner_id"]

        state = client.get("/api/tournament/state").json()
        assert state["phase"] == "KNOCKOUT"
        assert state["champion_id"] == bracket["champion_id"]
        assert client.post("/api/knockout/next").json()["status"] == "STAGE_COMPLETE"
