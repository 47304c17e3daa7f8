import pytest

from squidparty.services import view_router as vr


def _snapshot(current_round=1, status="playing", **player):
    record = {"id": "p1", "name": "Alice", "number": 1, "isEliminated": False, "coins": 0, "clearedRound": 0}
    record.update(player)
    return {"code": "AB12CD", "status": status, "currentRound": current_round, "players": {"p1": record}}


def test_missing_session_is_game_over():
    assert vr.resolve_view(None, "p1") == {"view": "game-over", "message": vr.MSG_SESSION_ENDED}


def test_elimination_overrides_everything():
    for snap in (_snapshot(isEliminated=True), _snapshot(0, "lobby", isEliminated=True), _snapshot(7, isEliminated=True)):
        assert vr.resolve_view(snap, "p1") == {"view": "game-over", "message": vr.MSG_ELIMINATED}


def test_completed_session():
    assert vr.resolve_view(_snapshot(7), "p1")["message"] == vr.MSG_COMPLETED


def test_lobby():
    assert vr.resolve_view(_snapshot(0, "lobby"), "p1")["view"] == "lobby"
    assert vr.resolve_view(_snapshot(0, "lobby"), "stranger")["view"] == "lobby"


@pytest.mark.parametrize(
    "current_round,view",
    [
        (1, "red-light-green-light"),
        (2, "honeycomb"),
        (3, "tug-of-war"),
        (4, "marbles"),
        (5, "glass-bridge"),
        (6, "squid-game"),
    ],
)
def test_round_views(current_round, view):
    assert vr.resolve_view(_snapshot(current_round), "p1") == {"view": view, "message": None}


def test_unknown_player_during_round_is_not_joined():
    assert vr.resolve_view(_snapshot(2), "stranger")["view"] == "not-joined"
    assert vr.resolve_view(_snapshot(2), None)["view"] == "not-joined"


def test_survivor_waits_in_lobby():
    resolved = vr.resolve_view(_snapshot(3, clearedRound=3), "p1")
    assert resolved == {"view": "lobby", "message": vr.MSG_SURVIVED}
    assert vr.resolve_view(_snapshot(4, clearedRound=3), "p1")["view"] == "marbles"
