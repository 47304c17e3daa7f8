"""
Red Light, Green Light (jeu de réaction, manche 1).

Machine partagée par toute la session : un signal global alterne entre `go` et `stop`,
chaque joueur ("runner") a sa propre progression 0–100.

Règles:
- pendant `go`, un runner qui se déplace gagne STEP_PER_TICK par tick;
- commencer à bouger pendant `stop` élimine immédiatement;
- un runner encore en mouvement STOP_GRACE_TICKS après le début d'un `stop` est éliminé;
- atteindre 100 rend le runner `safe` (définitif);
- à l'expiration du compte à rebours, tout runner sous 100 est éliminé.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .base import (
    PHASE_FINISHED,
    PHASE_WAITING,
    GameActionError,
    Outcome,
    evolve,
    require_phase,
)

GAME_ID = "red_light"
REWARD = 100

TICK_SECONDS = 0.1
ROUND_TICKS = 300  # 30 s
STEP_PER_TICK = 2
GO_PROBABILITY = 0.6
SIGNAL_MIN_TICKS = 20  # 2 s
SIGNAL_MAX_TICKS = 50  # 5 s
STOP_GRACE_TICKS = 3

PHASE_GO = "go"
PHASE_STOP = "stop"

RUNNING = "running"
SAFE = "safe"
ELIMINATED = "eliminated"


@dataclass
class Runner:
    progress: int = 0
    moving: bool = False
    status: str = RUNNING


@dataclass
class RedLightState:
    phase: str = PHASE_WAITING
    ticks_left: int = ROUND_TICKS
    signal_ticks_left: int = 0
    stop_elapsed: int = 0
    runners: Dict[str, Runner] = field(default_factory=dict)


def _next_signal(state: RedLightState, rng: random.Random, go: bool) -> None:
    state.phase = PHASE_GO if go else PHASE_STOP
    state.signal_ticks_left = rng.randint(SIGNAL_MIN_TICKS, SIGNAL_MAX_TICKS)
    state.stop_elapsed = 0


def _finish_if_done(state: RedLightState) -> None:
    if not any(r.status == RUNNING for r in state.runners.values()):
        state.phase = PHASE_FINISHED


def start(state: RedLightState, player_ids: Iterable[str], rng: random.Random) -> RedLightState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.runners = {pid: Runner() for pid in player_ids}
    nxt.ticks_left = ROUND_TICKS
    _next_signal(nxt, rng, go=True)
    _finish_if_done(nxt)
    return nxt


def move(state: RedLightState, player_id: str, moving: bool) -> RedLightState:
    require_phase(state, PHASE_GO, PHASE_STOP)
    runner = state.runners.get(player_id)
    if runner is None:
        raise GameActionError("not_in_round")
    if runner.status != RUNNING:
        raise GameActionError(f"runner_{runner.status}")
    nxt = evolve(state)
    target = nxt.runners[player_id]
    target.moving = moving
    if moving and nxt.phase == PHASE_STOP:
        target.status = ELIMINATED
        target.moving = False
        _finish_if_done(nxt)
    return nxt


def tick(state: RedLightState, rng: random.Random) -> RedLightState:
    if state.phase not in (PHASE_GO, PHASE_STOP):
        return state
    nxt = evolve(state)
    nxt.ticks_left -= 1

    for runner in nxt.runners.values():
        if runner.status != RUNNING or not runner.moving:
            continue
        if nxt.phase == PHASE_GO:
            runner.progress = min(runner.progress + STEP_PER_TICK, 100)
            if runner.progress >= 100:
                runner.status = SAFE
                runner.moving = False
        elif nxt.stop_elapsed >= STOP_GRACE_TICKS:
            runner.status = ELIMINATED
            runner.moving = False
    if nxt.phase == PHASE_STOP:
        nxt.stop_elapsed += 1

    nxt.signal_ticks_left -= 1
    if nxt.signal_ticks_left <= 0:
        _next_signal(nxt, rng, go=rng.random() < GO_PROBABILITY)

    if nxt.ticks_left <= 0:
        for runner in nxt.runners.values():
            if runner.status == RUNNING:
                runner.status = SAFE if runner.progress >= 100 else ELIMINATED
                runner.moving = False
        nxt.phase = PHASE_FINISHED
        return nxt

    _finish_if_done(nxt)
    return nxt


def resolved_between(before: RedLightState, after: RedLightState) -> List[Outcome]:
    """Runners passés de `running` à `safe`/`eliminated` lors d'une transition."""
    outcomes: List[Outcome] = []
    for pid, runner in after.runners.items():
        previous = before.runners.get(pid)
        was_running = previous is None or previous.status == RUNNING
        if was_running and runner.status != RUNNING:
            outcomes.append(Outcome(pid, runner.status == SAFE))
    return outcomes


def public_view(state: RedLightState) -> dict:
    return {
        "game": GAME_ID,
        "phase": state.phase,
        "secondsLeft": round(state.ticks_left * TICK_SECONDS, 1),
        "signalSecondsLeft": round(max(state.signal_ticks_left, 0) * TICK_SECONDS, 1),
        "runners": {
            pid: {"progress": r.progress, "moving": r.moving, "status": r.status}
            for pid, r in state.runners.items()
        },
    }
