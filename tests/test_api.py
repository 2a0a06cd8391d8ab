"""HTTP layer: routing, actor headers and error translation."""
import pytest

from efootball_backend.core.config import settings


def register(client, username, team_name):
    response = client.post("/auth/register", json={
        "username": username,
        "password": "secret123",
        "team_name": team_name,
        "registration_token": settings.DEFAULT_REGISTRATION_TOKEN,
    })
    assert response.status_code == 200, response.text
    return response.json()


@pytest.fixture
def admin_headers(client, store):
    from efootball_backend.core.database import USER

    admin = next(u for u in store.list(USER) if u.username == settings.DEFAULT_ADMIN_USERNAME)
    return {"X-User-Id": str(admin.id)}


@pytest.fixture
def league(client, admin_headers):
    """Seeded admin team plus three registered players, with a generated schedule."""
    players = [register(client, name, team) for name, team in
               (("alice", "Alpha"), ("bob", "Bravo"), ("carol", "Charlie"))]
    response = client.post("/matches/schedule", headers=admin_headers, json={
        "start_date": "2025-03-01", "matches_per_matchday": 2, "interval_days": 7,
    })
    assert response.status_code == 200, response.text
    return players


def headers_for(user):
    return {"X-User-Id": str(user["id"])}


class TestBasics:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_register_and_login(self, client):
        user = register(client, "alice", "Alpha")
        assert user["role"] == "user"
        assert "password_hash" not in user

        response = client.post("/auth/login", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 200
        assert response.json()["id"] == user["id"]

        response = client.post("/auth/login", json={"username": "alice", "password": "nope-nope"})
        assert response.status_code == 403
        assert response.json()["error"] == "Unauthorized"

    def test_validate_token(self, client):
        ok = client.post("/auth/validate-token", json={"token": settings.DEFAULT_REGISTRATION_TOKEN})
        assert ok.json() == {"valid": True}
        bad = client.post("/auth/validate-token", json={"token": "wrong"})
        assert bad.status_code == 401
        assert bad.json()["error"] == "InvalidRegistrationToken"

    def test_actor_header_required(self, client):
        assert client.get("/results/pending").status_code == 401
        assert client.get("/results/pending", headers={"X-User-Id": "999"}).status_code == 401

    def test_admin_routes_reject_players(self, client):
        alice = register(client, "alice", "Alpha")
        assert client.get("/users/", headers=headers_for(alice)).status_code == 403


class TestSchedule:
    def test_generated_schedule(self, client, league):
        matches = client.get("/matches/").json()
        assert len(matches) == 12
        matchdays = client.get("/matches/matchdays").json()
        assert [d["matchday"] for d in matchdays] == [1, 2, 3, 4, 5, 6]

    def test_preview_does_not_save(self, client, admin_headers):
        register(client, "alice", "Alpha")
        response = client.post("/matches/schedule/preview", headers=admin_headers,
                               json={"start_date": "2025-03-01"})
        assert response.status_code == 200
        assert len(response.json()) == 2
        assert client.get("/matches/").json() == []

    def test_schedule_needs_two_teams(self, client, admin_headers):
        response = client.post("/matches/schedule", headers=admin_headers, json={"start_date": "2025-03-01"})
        assert response.status_code == 400
        assert response.json()["error"] == "InsufficientTeams"

    def test_unknown_match(self, client):
        assert client.get("/matches/404").status_code == 404


class TestResultFlow:
    def test_submit_approve_and_standings(self, client, league, admin_headers):
        alice = league[0]
        match = next(m for m in client.get("/matches/").json()
                     if m["home_team"] == "Alpha" and m["away_team"] == "Bravo")

        response = client.post("/results/", headers=headers_for(alice), json={
            "match_id": match["id"], "home_score": 2, "away_score": 1,
        })
        assert response.status_code == 200, response.text
        pending = response.json()
        assert pending["status"] == "pending"
        assert len(client.get("/results/mine", headers=headers_for(alice)).json()) == 1

        denied = client.post(f"/results/{pending['id']}/approve", headers=headers_for(alice))
        assert denied.status_code == 403

        approved = client.post(f"/results/{pending['id']}/approve", headers=admin_headers)
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        again = client.post(f"/results/{pending['id']}/approve", headers=admin_headers)
        assert again.status_code == 409

        table = client.get("/leagues/standings").json()
        assert table["rows"][0]["team"] == "Alpha"
        assert table["rows"][0]["points"] == 3

        edited = client.put(f"/matches/{match['id']}/result", headers=admin_headers,
                            json={"home_score": 1, "away_score": 1})
        assert edited.status_code == 200
        points = {r["team"]: r["points"] for r in client.get("/leagues/standings").json()["rows"]}
        assert points["Alpha"] == points["Bravo"] == 1

        stale = client.get("/leagues/standings/stale", headers=admin_headers).json()
        assert stale["stale_count"] == 0

    def test_submit_for_unknown_match(self, client, league):
        response = client.post("/results/", headers=headers_for(league[0]), json={
            "match_id": 999, "home_score": 1, "away_score": 0,
        })
        assert response.status_code == 404
        assert response.json()["error"] == "MatchNotFound"

    def test_negative_scores_are_rejected(self, client, league):
        response = client.post("/results/", headers=headers_for(league[0]), json={
            "match_id": 1, "home_score": -1, "away_score": 0,
        })
        assert response.status_code == 422


class TestAdministration:
    def test_delete_completed_match_reverts_standings(self, client, league, admin_headers):
        match = client.get("/matches/").json()[0]
        entered = client.put(f"/matches/{match['id']}/result", headers=admin_headers,
                             json={"home_score": 3, "away_score": 0})
        assert entered.status_code == 200

        response = client.delete(f"/matches/{match['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["reverted"] is True

        assert all(r["played"] == 0 for r in client.get("/leagues/standings").json()["rows"])
        assert client.get("/leagues/standings/stale", headers=admin_headers).json()["stale_count"] == 0
        assert client.delete(f"/matches/{match['id']}", headers=admin_headers).status_code == 404

    def test_delete_user_cascades(self, client, league, admin_headers):
        bob = league[1]
        response = client.delete(f"/users/{bob['id']}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["matches_deleted"] == 6

        teams = [t["name"] for t in client.get("/teams/").json()]
        assert "Bravo" not in teams
        assert len(client.get("/matches/").json()) == 6

    def test_owner_can_rename_team(self, client, league):
        alice, bob = league[0], league[1]
        alpha = next(t for t in client.get("/teams/").json() if t["name"] == "Alpha")

        denied = client.put(f"/teams/{alpha['id']}", headers=headers_for(bob), json={"name": "Hijacked"})
        assert denied.status_code == 403

        renamed = client.put(f"/teams/{alpha['id']}", headers=headers_for(alice), json={"name": "Alpha Prime"})
        assert renamed.status_code == 200
        assert any(m["home_team"] == "Alpha Prime" for m in client.get("/matches/").json())

    def test_settings_roundtrip(self, client, admin_headers):
        response = client.put("/settings/", headers=admin_headers, json={"allow_registration": False})
        assert response.status_code == 200
        assert client.get("/settings/", headers=admin_headers).json()["allow_registration"] is False

        closed = client.post("/auth/register", json={
            "username": "late", "password": "secret123", "team_name": "Latecomers",
            "registration_token": settings.DEFAULT_REGISTRATION_TOKEN,
        })
        assert closed.status_code == 403
