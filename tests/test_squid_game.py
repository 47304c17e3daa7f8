import random

import pytest

from squidparty.games import squid_game as sg
from squidparty.games.base import GameActionError


def _playing(**kwargs):
    state = sg.CombatState(phase="playing")
    for key, value in kwargs.items():
        setattr(state, key, value)
    return state


def test_choose_locks_turn_and_rolls_opponent(stub_random):
    state = sg.choose(_playing(), "attack", stub_random(0.9))
    assert state.player_action == "attack"
    assert state.opponent_action == "attack"
    assert sg.choose(_playing(), "attack", stub_random(0.5)).opponent_action == "defend"
    with pytest.raises(GameActionError, match="turn_locked"):
        sg.choose(state, "defend", stub_random(0.1))
    assert sg.public_view(state)["locked"] is True


def test_both_attack_each_side_takes_a_full_roll():
    rng = random.Random(4)
    for _ in range(50):
        state = sg.resolve(_playing(player_action="attack", opponent_action="attack"), rng)
        assert sg.DAMAGE_MIN <= state.last_player_damage <= sg.DAMAGE_MAX
        assert sg.DAMAGE_MIN <= state.last_opponent_damage <= sg.DAMAGE_MAX


def test_defender_takes_reduced_damage():
    rng = random.Random(4)
    for _ in range(50):
        state = sg.resolve(_playing(player_action="attack", opponent_action="defend"), rng)
        assert state.last_player_damage == 0
        assert int(sg.DAMAGE_MIN * 0.5) <= state.last_opponent_damage <= int(sg.DAMAGE_MAX * 0.5)

        state = sg.resolve(_playing(player_action="defend", opponent_action="attack"), rng)
        assert state.last_opponent_damage == 0
        assert int(sg.DAMAGE_MIN * 0.5) <= state.last_player_damage <= int(sg.DAMAGE_MAX * 0.5)


def test_both_defend_no_damage_and_turn_unlocks():
    state = sg.resolve(_playing(player_action="defend", opponent_action="defend"), random.Random(1))
    assert (state.player_health, state.opponent_health) == (100, 100)
    assert state.turn == 1
    assert state.player_action is None and state.phase == "playing"


def test_double_knockout_eliminates_player():
    state = _playing(player_health=5, opponent_health=5, player_action="attack", opponent_action="attack")
    state = sg.resolve(state, random.Random(0))
    assert (state.player_health, state.opponent_health) == (0, 0)
    assert state.won is False
    assert state.phase == "finished"


def test_opponent_knockout_wins():
    state = _playing(opponent_health=3, player_action="attack", opponent_action="defend")
    state = sg.resolve(state, random.Random(0))
    assert state.opponent_health == 0
    assert state.won is True


def test_resolve_requires_a_choice():
    with pytest.raises(GameActionError):
        sg.resolve(_playing(), random.Random(0))
