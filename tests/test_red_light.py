import random

import pytest

from squidparty.games import red_light as rl
from squidparty.games.base import GameActionError


def _state(phase, **runners):
    return rl.RedLightState(
        phase=phase,
        ticks_left=200,
        signal_ticks_left=100,
        runners={pid: runner for pid, runner in runners.items()},
    )


def test_start_opens_with_go_signal():
    state = rl.start(rl.RedLightState(), ["a", "b"], random.Random(1))
    assert state.phase == rl.PHASE_GO
    assert rl.SIGNAL_MIN_TICKS <= state.signal_ticks_left <= rl.SIGNAL_MAX_TICKS
    assert set(state.runners) == {"a", "b"}
    assert all(r.status == rl.RUNNING for r in state.runners.values())


@pytest.mark.parametrize("value", [0.6, 0.75, 0.99])
@pytest.mark.parametrize("ticks_into_stop", [0, 1, rl.STOP_GRACE_TICKS, 10])
def test_moving_during_stop_always_eliminates(stub_random, value, ticks_into_stop):
    rng = stub_random(value)
    state = rl.start(rl.RedLightState(), ["a"], rng)
    while state.phase == rl.PHASE_GO:
        state = rl.tick(state, rng)
    for _ in range(ticks_into_stop):
        state = rl.tick(state, rng)
    assert state.phase == rl.PHASE_STOP
    after = rl.move(state, "a", True)
    assert after.runners["a"].status == rl.ELIMINATED
    assert state.runners["a"].status == rl.RUNNING  # entrée non modifiée


def test_reaching_finish_during_go_is_safe():
    state = _state(rl.PHASE_GO, a=rl.Runner(progress=98, moving=True))
    after = rl.tick(state, random.Random(0))
    assert after.runners["a"].progress == 100
    assert after.runners["a"].status == rl.SAFE
    assert after.phase == rl.PHASE_FINISHED
    assert rl.resolved_between(state, after)[0].survived is True


def test_still_moving_after_grace_is_eliminated():
    state = _state(rl.PHASE_STOP, a=rl.Runner(progress=40, moving=True))
    rng = random.Random(0)
    for _ in range(rl.STOP_GRACE_TICKS):
        state = rl.tick(state, rng)
        assert state.runners["a"].status == rl.RUNNING
    state = rl.tick(state, rng)
    assert state.runners["a"].status == rl.ELIMINATED
    assert state.runners["a"].progress == 40


def test_stopping_within_grace_survives():
    state = _state(rl.PHASE_STOP, a=rl.Runner(progress=40, moving=True))
    rng = random.Random(0)
    state = rl.tick(state, rng)
    state = rl.move(state, "a", False)
    for _ in range(10):
        state = rl.tick(state, rng)
    assert state.runners["a"].status == rl.RUNNING


def test_expiry_eliminates_runners_below_finish():
    state = _state(rl.PHASE_GO, a=rl.Runner(progress=50), b=rl.Runner(progress=100, status=rl.SAFE))
    state.ticks_left = 1
    after = rl.tick(state, random.Random(0))
    assert after.phase == rl.PHASE_FINISHED
    assert after.runners["a"].status == rl.ELIMINATED
    assert after.runners["b"].status == rl.SAFE
    outcomes = rl.resolved_between(state, after)
    assert [(o.player_id, o.survived) for o in outcomes] == [("a", False)]


def test_move_rejections():
    state = _state(rl.PHASE_GO, a=rl.Runner(status=rl.SAFE))
    with pytest.raises(GameActionError):
        rl.move(state, "ghost", True)
    with pytest.raises(GameActionError):
        rl.move(state, "a", True)
    with pytest.raises(GameActionError):
        rl.move(rl.RedLightState(), "a", True)


def test_public_view_shape():
    view = rl.public_view(_state(rl.PHASE_GO, a=rl.Runner(progress=10, moving=True)))
    assert view["game"] == "red_light"
    assert view["secondsLeft"] == 20.0
    assert view["runners"]["a"] == {"progress": 10, "moving": True, "status": "running"}
