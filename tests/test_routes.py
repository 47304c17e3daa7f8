import asyncio

import pytest
from fastapi.testclient import TestClient

from squidparty.config.settings import settings
from squidparty.main import app, list_routes
from squidparty.services.session_store import get_round_engine

ADMIN = {"Authorization": f"Bearer {settings.ADMIN_TOKEN}"}


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def _create(client, code, **options):
    res = client.post("/admin/games", json={"code": code, **options}, headers=ADMIN)
    assert res.status_code == 200, res.text
    return res.json()


def _join(client, code, name):
    res = client.post("/players/join", json={"code": code, "name": name})
    assert res.status_code == 200, res.text
    return res.json()["player_id"]


def test_health_and_root(client):
    assert client.get("/").json() == {"ok": True, "service": "squidparty-backend"}
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["timers"] is False


def test_admin_guard(client):
    assert client.get("/admin/games").status_code == 401
    res = client.get("/admin/games", headers={"Authorization": "Bearer nope"})
    assert res.status_code == 403
    assert res.json()["detail"] == "Invalid token"
    assert client.get("/admin/games", headers=ADMIN).status_code == 200


def test_cookie_login_flow(client):
    bad = client.post("/auth/admin/login", json={"username": "admin", "password": "wrong"})
    assert bad.status_code == 401

    res = client.post(
        "/auth/admin/login",
        json={"username": settings.ADMIN_USER, "password": settings.ADMIN_PASSWORD},
    )
    assert res.status_code == 200
    assert "admin_session" in res.cookies
    assert client.get("/admin/games").status_code == 200

    client.post("/auth/admin/logout")
    client.cookies.clear()
    assert client.get("/admin/games").status_code == 401


def test_join_unknown_code_is_404(client):
    res = client.post("/players/join", json={"code": "ZZZZZZ", "name": "Nobody"})
    assert res.status_code == 404
    assert res.json()["detail"] == "session_not_found"


def test_red_light_elimination_end_to_end(client, stub_random):
    snapshot = _create(client, "AB12CD")
    assert snapshot["currentRound"] == 0 and snapshot["status"] == "lobby"

    res = client.post("/players/join", json={"code": "ab12cd", "name": "Alice"})
    alice = res.json()
    assert alice["code"] == "AB12CD"
    assert alice["player"]["number"] == 1
    alice = alice["player_id"]

    view = client.get("/games/AB12CD/view", params={"player_id": alice}).json()
    assert view == {"view": "lobby", "message": None}

    advanced = client.post("/admin/games/AB12CD/advance", headers=ADMIN).json()
    assert advanced["currentRound"] == 1
    view = client.get("/games/AB12CD/view", params={"player_id": alice}).json()
    assert view["view"] == "red-light-green-light"

    get_round_engine("AB12CD").rng = stub_random(0.99)
    started = client.post("/games/AB12CD/round/start", json={"player_id": alice})
    assert started.status_code == 200
    assert started.json()["shared"]["phase"] == "go"

    for _ in range(6):
        status = client.post("/admin/games/AB12CD/round/tick", json={"count": 10}, headers=ADMIN).json()
        if status["shared"]["phase"] == "stop":
            break
    assert status["shared"]["phase"] == "stop"

    moved = client.post("/games/AB12CD/round/red-light/move", json={"player_id": alice, "moving": True})
    assert moved.status_code == 200

    view = client.get("/games/AB12CD/view", params={"player_id": alice}).json()
    assert view == {"view": "game-over", "message": "You have been eliminated!"}
    snap = client.get("/games/AB12CD").json()
    assert snap["currentRound"] == 1
    assert snap["players"][alice]["isEliminated"] is True

    again = client.post("/games/AB12CD/round/red-light/move", json={"player_id": alice, "moving": True})
    assert again.status_code == 403
    assert again.json()["detail"] == "player_eliminated"


def test_wrong_game_and_lobby_actions_conflict(client):
    _create(client, "CONF01")
    pid = _join(client, "CONF01", "Eve")
    res = client.post("/games/CONF01/round/marbles/guess", json={"player_id": pid, "guess": "odd"})
    assert res.status_code == 409
    client.post("/admin/games/CONF01/advance", headers=ADMIN)
    res = client.post("/games/CONF01/round/marbles/guess", json={"player_id": pid, "guess": "odd"})
    assert res.status_code == 409
    assert res.json()["detail"] == "wrong_game:red_light"


def test_view_of_missing_session_is_game_over(client):
    view = client.get("/games/GONE00/view", params={"player_id": "x"}).json()
    assert view["view"] == "game-over"
    assert client.get("/games/GONE00").status_code == 404


def test_leaderboard_and_events(client):
    _create(client, "LEAD01")
    a = _join(client, "LEAD01", "A")
    b = _join(client, "LEAD01", "B")
    client.post(f"/admin/games/LEAD01/players/{b}/eliminate", headers=ADMIN)

    board = client.get("/games/LEAD01/leaderboard").json()["leaderboard"]
    assert [row["player_id"] for row in board] == [a, b]
    assert board[1]["isEliminated"] is True

    events = client.get("/admin/games/LEAD01/events", params={"limit": 50}, headers=ADMIN).json()
    kinds = [e["kind"] for e in events]
    assert kinds[0] == "session_created"
    assert "player_eliminated" in kinds


def test_duplicate_code_conflict(client):
    _create(client, "DUPE01")
    res = client.post("/admin/games", json={"code": "DUPE01"}, headers=ADMIN)
    assert res.status_code == 409
    assert res.json()["detail"] == "session_exists"


def test_websocket_streams_state_until_session_ends(client):
    _create(client, "WSTEST")
    with client.websocket_connect("/ws/session/WSTEST") as ws:
        first = ws.receive_json()
        assert first["type"] == "session_state"
        assert first["payload"]["code"] == "WSTEST"

        ws.send_json({"type": "ping"})
        assert ws.receive_json() == {"type": "pong"}

        pid = _join(client, "WSTEST", "Zoe")
        update = ws.receive_json()
        assert update["type"] == "session_state"
        assert pid in update["payload"]["players"]

        assert client.delete("/admin/games/WSTEST", headers=ADMIN).status_code == 200
        assert ws.receive_json()["type"] == "session_ended"


def test_websocket_unknown_session_ends_immediately(client):
    with client.websocket_connect("/ws/session/NOSUCH") as ws:
        assert ws.receive_json() == {"type": "session_ended", "payload": {"code": "NOSUCH"}}


def test_reset_ends_every_session(client):
    _create(client, "RESET1")
    _create(client, "RESET2")
    res = client.post("/admin/reset", headers=ADMIN)
    assert res.status_code == 200
    assert res.json()["sessions_ended"] >= 2
    assert client.get("/admin/games", headers=ADMIN).json() == {"games": []}


def test_join_rejects_path_like_id_and_blank_name(client):
    _create(client, "JOIN01")
    res = client.post("/players/join", json={"code": "JOIN01", "name": "Mallory", "player_id": "m/x"})
    assert res.status_code == 422
    res = client.post("/players/join", json={"code": "JOIN01", "name": "   "})
    assert res.status_code == 422
    assert client.get("/games/JOIN01").json()["players"] == {}

    res = client.post("/players/join", json={"code": "JOIN01", "name": " Max ", "player_id": "max_01"})
    assert res.status_code == 200
    assert res.json()["player"]["name"] == "Max"


def test_startup_route_listing_skips_entries_without_path(monkeypatch):
    class MountedRouter:
        routes = []

    monkeypatch.setattr(app.router, "routes", [*app.router.routes, MountedRouter()])
    asyncio.run(list_routes())
