import asyncio
import random

import pytest

from squidparty.games import marbles, tug_of_war
from squidparty.games.base import GameActionError
from squidparty.services.round_engine import RoundEngine, RoundNotActive
from squidparty.services.session_state import GameSession, PlayerEliminated


def _setup(store, code, names=("Alice", "Bob"), rng=None, options=None, **kwargs):
    session = GameSession.create(store, code, options)
    ids = [session.add_player(name)["id"] for name in names]
    kwargs.setdefault("timers_enabled", False)
    kwargs.setdefault("auto_advance", False)
    engine = RoundEngine(session, rng=rng or random.Random(7), **kwargs)
    return session, engine, ids


def _goto(engine, round_number):
    while engine.session.current_round < round_number:
        engine.advance_round()


def test_no_round_in_lobby(store):
    _, engine, ids = _setup(store, "LOBBY1")
    with pytest.raises(RoundNotActive):
        engine.start(admin=True)
    with pytest.raises(RoundNotActive):
        engine.red_light_move(ids[0], True)
    assert engine.status()["game"] is None


def test_moving_on_red_light_eliminates(store, stub_random):
    session, engine, (alice, bob) = _setup(store, "AB12CD", rng=stub_random(0.99))
    assert engine.advance_round() == 1

    with pytest.raises(RoundNotActive, match="round_not_started"):
        engine.red_light_move(alice, True)

    status = engine.start(admin=True)
    assert status["game"] == "red_light"
    assert session.snapshot()["redLight"]["phase"] == "go"
    with pytest.raises(GameActionError, match="already_started"):
        engine.start(admin=True)

    for _ in range(60):
        engine.tick()
        if session.snapshot()["redLight"]["phase"] == "stop":
            break
    assert session.snapshot()["redLight"]["phase"] == "stop"

    engine.red_light_move(alice, True)
    snap = session.snapshot()
    assert snap["players"][alice]["isEliminated"] is True
    assert snap["players"][bob]["isEliminated"] is False
    assert snap["redLight"]["runners"][alice]["status"] == "eliminated"
    assert snap["currentRound"] == 1

    with pytest.raises(PlayerEliminated):
        engine.red_light_move(alice, True)


def test_red_light_time_out_eliminates_unfinished(store):
    session, engine, ids = _setup(store, "RLTIME")
    engine.advance_round()
    engine.start(admin=True)
    engine.tick(300)
    snap = session.snapshot()
    assert snap["redLight"]["phase"] == "finished"
    assert all(snap["players"][pid]["isEliminated"] for pid in ids)


def test_action_for_another_game_is_rejected(store):
    _, engine, ids = _setup(store, "WRONG1")
    engine.advance_round()
    engine.start(admin=True)
    with pytest.raises(GameActionError, match="wrong_game:red_light"):
        engine.marbles_guess(ids[0], "odd")


def test_honeycomb_expiry_without_trace_eliminates(store):
    session, engine, (alice, bob) = _setup(store, "HONEY1")
    _goto(engine, 2)
    engine.start(player_id=alice)
    with pytest.raises(RoundNotActive):
        engine.honeycomb_submit(bob)
    assert session.snapshot()["play"][alice]["phase"] == "playing"

    engine.tick(60)
    snap = session.snapshot()
    assert snap["play"][alice]["phase"] == "finished"
    assert snap["players"][alice]["isEliminated"] is True
    assert snap["players"][bob]["isEliminated"] is False


def test_marbles_outcome_pays_or_eliminates(store):
    session, engine, ids = _setup(store, "MARBL1", names=("a", "b", "c", "d"))
    _goto(engine, 4)
    engine.start(admin=True)
    for pid in ids:
        engine.marbles_guess(pid, "odd")

    snap = session.snapshot()
    for pid in ids:
        view = snap["play"][pid]
        assert view["phase"] == "finished"
        player = snap["players"][pid]
        if marbles.is_correct("odd", view["count"]):
            assert player["coins"] == marbles.REWARD
            assert player["clearedRound"] == 4
        else:
            assert player["isEliminated"] is True
            assert player["coins"] == 0


def test_team_tug_of_war_winner_paid_loser_eliminated(store):
    session, engine, (alice, bob) = _setup(store, "TUGTM1")
    _goto(engine, 3)
    engine.start(player_id=alice)
    assert engine.status()["mode"] == "team"

    for _ in range(34):
        engine.tug_pull(alice)
    snap = session.snapshot()
    assert snap["tugOfWar"]["phase"] == "finished"
    assert snap["players"][alice]["coins"] == tug_of_war.REWARD
    assert snap["players"][bob]["isEliminated"] is True
    assert snap["currentRound"] == 3


def test_auto_advance_after_team_round(store):
    session, engine, (alice, _) = _setup(store, "TUGTM2", auto_advance=True)
    _goto(engine, 3)
    engine.start(admin=True)
    for _ in range(34):
        engine.tug_pull(alice)
    snap = session.snapshot()
    assert snap["currentRound"] == 4
    assert "tugOfWar" not in snap


def test_solo_tug_of_war_variant(store):
    session, engine, (alice, _) = _setup(store, "TUGSO1", options={"tugOfWarMode": "solo"})
    _goto(engine, 3)
    engine.start(player_id=alice)
    for _ in range(34):
        engine.tug_pull(alice)
    snap = session.snapshot()
    assert snap["play"][alice]["won"] is True
    assert snap["players"][alice]["clearedRound"] == 3


def test_team_bridge_leader_crosses_and_all_survivors_win(store):
    session, engine, ids = _setup(store, "BRIDG1", names=("a", "b", "c"))
    _goto(engine, 5)
    engine.start(admin=True)
    state = engine._shared.state
    order, layout = list(state.turn_order), list(state.layout)
    wrong = "right" if layout[0] == "left" else "left"

    engine.bridge_choose(order[0], wrong)
    assert session.snapshot()["players"][order[0]]["isEliminated"] is True
    with pytest.raises(PlayerEliminated):
        engine.bridge_choose(order[0], layout[0])
    with pytest.raises(GameActionError, match="not_your_turn"):
        engine.bridge_choose(order[2], layout[0])

    for panel in layout:
        engine.bridge_choose(order[1], panel)
    snap = session.snapshot()
    assert snap["glassBridge"]["phase"] == "finished"
    assert sorted(snap["glassBridge"]["winners"]) == sorted(order[1:])
    for pid in order[1:]:
        assert snap["players"][pid]["coins"] == 300
        assert snap["players"][pid]["clearedRound"] == 5


def test_skip_turn_counts_as_a_fall(store):
    session, engine, ids = _setup(store, "BRIDG2", names=("a", "b"))
    _goto(engine, 5)
    engine.start(admin=True)
    leader = engine._shared.state.turn_order[0]
    engine.bridge_skip_turn()
    assert session.snapshot()["players"][leader]["isEliminated"] is True
    assert session.snapshot()["glassBridge"]["currentPlayer"] != leader


def test_combat_round_resolves_immediately_without_timers(store):
    session, engine, (alice, _) = _setup(store, "FINAL1")
    _goto(engine, 6)
    engine.start(player_id=alice)
    status = engine.combat_choose(alice, "defend")
    assert status["solo"]["turn"] == 1
    assert status["solo"]["locked"] is False


def test_advance_discards_live_machines(store):
    session, engine, ids = _setup(store, "DISC01")
    engine.advance_round()
    engine.start(admin=True)
    assert engine.status()["started"] is True
    engine.advance_round()
    assert engine.status()["started"] is False
    assert "redLight" not in session.snapshot()
    engine.start(player_id=ids[0])
    assert engine.status(ids[0])["solo"]["game"] == "honeycomb"


def test_advance_cancels_running_clock(store):
    session, engine, _ = _setup(store, "CLOCK1", timers_enabled=True)

    async def scenario():
        engine.advance_round()
        engine.start(admin=True)
        await asyncio.sleep(0.35)
        assert session.snapshot()["redLight"]["secondsLeft"] < 30
        engine.advance_round()
        await asyncio.sleep(0.25)

    asyncio.run(scenario())
    assert "redLight" not in session.snapshot()
    engine.shutdown()


def test_idle_bridge_turn_is_forfeited_after_timeout(store):
    session, engine, ids = _setup(store, "BRTIME", names=("a", "b"), timers_enabled=True, bridge_timeout=0.2)

    async def scenario():
        _goto(engine, 5)
        engine.start(admin=True)
        order = list(engine._shared.state.turn_order)
        await asyncio.sleep(0.3)
        snap = session.snapshot()
        engine.shutdown()
        return order, snap

    (leader, follower), snap = asyncio.run(scenario())
    assert snap["players"][leader]["isEliminated"] is True
    assert snap["players"][follower]["isEliminated"] is False
    assert snap["glassBridge"]["currentPlayer"] == follower
    assert snap["glassBridge"]["eliminated"] == [leader]


def test_marbles_reveal_waits_for_the_suspense_delay(store, monkeypatch):
    monkeypatch.setattr(marbles, "REVEAL_DELAY", 0.1)
    session, engine, (alice, _) = _setup(store, "MARBL2", timers_enabled=True)

    async def scenario():
        _goto(engine, 4)
        engine.start(player_id=alice)
        engine.marbles_guess(alice, "even")
        pending = session.snapshot()["play"][alice]
        await asyncio.sleep(0.25)
        engine.shutdown()
        return pending, session.snapshot()

    pending, snap = asyncio.run(scenario())
    assert pending["phase"] == "revealing"
    assert pending["count"] is None
    view = snap["play"][alice]
    assert view["phase"] == "finished"
    survived = marbles.is_correct("even", view["count"])
    assert snap["players"][alice]["isEliminated"] is (not survived)
    assert snap["players"][alice]["clearedRound"] == (4 if survived else 0)
