import logging

import pytest

from squidparty.services.realtime_store import RealtimeStore


def test_set_get_returns_copies(store):
    store.set("games/AB12CD", {"code": "AB12CD", "players": {"p1": {"name": "Alice"}}})

    assert store.get("games/AB12CD/players/p1/name") == "Alice"
    snapshot = store.get("games/AB12CD")
    snapshot["players"]["p1"]["name"] = "Mallory"
    assert store.get("games/AB12CD/players/p1/name") == "Alice"
    assert store.get("games/NOPE") is None
    assert store.keys("games") == ["AB12CD"]


def test_update_is_multi_path_and_none_removes(store):
    store.set("games/X", {"currentRound": 1, "redLight": {"phase": "go"}, "players": {}})
    store.update("games/X", {"currentRound": 2, "status": "playing", "redLight": None, "play/p1": {"game": "marbles"}})

    node = store.get("games/X")
    assert node["currentRound"] == 2
    assert node["status"] == "playing"
    assert "redLight" not in node
    assert node["play"] == {"p1": {"game": "marbles"}}


def test_remove_prunes_empty_parents(store):
    store.set("games/X/play/p1", {"game": "marbles"})
    store.remove("games/X/play/p1")
    assert store.get("games") is None
    assert not store.exists("games/X")


def test_transaction_applies_atomically_and_aborts_on_error(store):
    store.set("counter", 1)
    assert store.transaction("counter", lambda v: (v or 0) + 1) == 2

    def boom(_):
        raise ValueError("nope")

    with pytest.raises(ValueError):
        store.transaction("counter", boom)
    assert store.get("counter") == 2


def test_subscribers_receive_subtree_then_none(store):
    seen = []
    sub = store.subscribe("games/X", seen.append)
    assert seen == [None]

    store.set("games/X/status", "lobby")
    store.set("games/Y/status", "lobby")  # autre branche: pas de notification
    store.update("games", {"X/currentRound": 1})
    store.remove("games/X")

    assert seen[1:] == [{"status": "lobby"}, {"status": "lobby", "currentRound": 1}, None]

    sub.cancel()
    store.set("games/X/status", "playing")
    assert len(seen) == 4
    assert store.subscriber_count() == 0


def test_parent_write_notifies_child_subscriber(store):
    seen = []
    store.subscribe("games/X/players", seen.append, immediate=False)
    store.set("games/X", {"players": {"p1": {"name": "Alice"}}})
    assert seen == [{"p1": {"name": "Alice"}}]


def test_subscriber_failure_is_logged_not_raised(store, caplog):
    def broken(_):
        raise RuntimeError("subscriber down")

    store.subscribe("games/X", broken, immediate=False)
    with caplog.at_level(logging.ERROR, logger="squidparty.services.realtime_store"):
        store.set("games/X/status", "lobby")

    assert store.get("games/X/status") == "lobby"
    assert any("Store subscriber failed" in r.message for r in caplog.records)


def test_persistence_roundtrip(tmp_path):
    path = tmp_path / "store.json"
    first = RealtimeStore(path)
    first.set("games/AB12CD/currentRound", 3)

    second = RealtimeStore(path)
    assert second.get("games/AB12CD") == {"currentRound": 3}
