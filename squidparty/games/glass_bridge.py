"""
Glass Bridge (pont de verre, manche 5).

Le pont compte NUM_STEPS marches; pour chacune, le côté sûr (`left` / `right`) est tiré
indépendamment avec p = 1/2. Le tracé n'est jamais publié tant qu'une marche n'est pas
révélée.

Variante équipe:
- ordre de passage = mélange des joueurs vivants;
- seul le joueur dont c'est le tour peut choisir; le choix pose `pending_panel`
  (verrou pendant STEP_DELAY secondes de suspense) puis `resolve` tranche;
- marche sûre: on avance d'une marche, le même joueur reste en tête;
- mauvais côté: seul ce joueur chute, la marche est révélée, le suivant repart de la
  même marche;
- atteindre la dernière marche: victoire partagée par tous les non-éliminés de l'ordre;
- plus personne: fin de manche sans vainqueur;
- `skip_turn` fait passer le tour du joueur courant (compte comme une chute).

Variante solo: même tracé aléatoire, sans tour; une erreur élimine, la dernière marche gagne.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import List, Optional

from .base import (
    PHASE_FINISHED,
    PHASE_PLAYING,
    PHASE_WAITING,
    GameActionError,
    Outcome,
    evolve,
    require_phase,
)

GAME_ID = "glass_bridge"
REWARD = 300

NUM_STEPS = 5
STEP_DELAY = 2.0
SIDES = ("left", "right")


def generate_layout(rng: random.Random, steps: int = NUM_STEPS) -> List[str]:
    return ["left" if rng.random() < 0.5 else "right" for _ in range(steps)]


def _check_side(panel: str) -> None:
    if panel not in SIDES:
        raise GameActionError("invalid_panel")


def _steps_view(layout: List[str], revealed: List[bool]) -> List[dict]:
    return [
        {"index": i, "revealed": bool(revealed[i]), "safe": layout[i] if revealed[i] else None}
        for i in range(len(layout))
    ]


# ---------------------------------------------------------------------------
# Variante équipe
# ---------------------------------------------------------------------------
@dataclass
class TeamBridgeState:
    phase: str = PHASE_WAITING
    layout: List[str] = field(default_factory=list)
    turn_order: List[str] = field(default_factory=list)
    current_step: int = 0
    current_turn: int = 0
    revealed: List[bool] = field(default_factory=list)
    pending_panel: Optional[str] = None
    eliminated: List[str] = field(default_factory=list)
    winners: List[str] = field(default_factory=list)


def current_player(state: TeamBridgeState) -> Optional[str]:
    if state.phase != PHASE_PLAYING or state.current_turn >= len(state.turn_order):
        return None
    return state.turn_order[state.current_turn]


def start_team(state: TeamBridgeState, turn_order: List[str], rng: random.Random) -> TeamBridgeState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.layout = generate_layout(rng)
    nxt.turn_order = list(turn_order)
    nxt.revealed = [False] * len(nxt.layout)
    nxt.current_step = 0
    nxt.current_turn = 0
    nxt.phase = PHASE_PLAYING if nxt.turn_order else PHASE_FINISHED
    return nxt


def choose_team(state: TeamBridgeState, player_id: str, panel: str) -> TeamBridgeState:
    require_phase(state, PHASE_PLAYING)
    _check_side(panel)
    if state.pending_panel is not None:
        raise GameActionError("turn_locked")
    if player_id != current_player(state):
        raise GameActionError("not_your_turn")
    nxt = evolve(state)
    nxt.pending_panel = panel
    return nxt


def _pass_turn(state: TeamBridgeState) -> None:
    state.eliminated.append(state.turn_order[state.current_turn])
    state.current_turn += 1
    if state.current_turn >= len(state.turn_order):
        state.winners = []
        state.phase = PHASE_FINISHED


def resolve_team(state: TeamBridgeState) -> TeamBridgeState:
    require_phase(state, PHASE_PLAYING)
    if state.pending_panel is None:
        raise GameActionError("nothing_pending")
    nxt = evolve(state)
    step = nxt.current_step
    panel, nxt.pending_panel = nxt.pending_panel, None
    nxt.revealed[step] = True
    if panel == nxt.layout[step]:
        nxt.current_step += 1
        if nxt.current_step >= len(nxt.layout):
            nxt.winners = [pid for pid in nxt.turn_order if pid not in nxt.eliminated]
            nxt.phase = PHASE_FINISHED
    else:
        _pass_turn(nxt)
    return nxt


def skip_turn(state: TeamBridgeState) -> TeamBridgeState:
    require_phase(state, PHASE_PLAYING)
    if state.pending_panel is not None:
        raise GameActionError("turn_locked")
    nxt = evolve(state)
    _pass_turn(nxt)
    return nxt


def team_outcomes_between(before: TeamBridgeState, after: TeamBridgeState) -> List[Outcome]:
    """Chutes survenues pendant la transition, puis vainqueurs si la manche vient de finir."""
    outcomes = [Outcome(pid, False) for pid in after.eliminated if pid not in before.eliminated]
    if before.phase != PHASE_FINISHED and after.phase == PHASE_FINISHED:
        outcomes.extend(Outcome(pid, True) for pid in after.winners)
    return outcomes


def team_view(state: TeamBridgeState) -> dict:
    return {
        "game": GAME_ID,
        "mode": "team",
        "phase": state.phase,
        "numSteps": len(state.layout) or NUM_STEPS,
        "currentStep": state.current_step,
        "currentTurn": state.current_turn,
        "currentPlayer": current_player(state),
        "turnOrder": list(state.turn_order),
        "steps": _steps_view(state.layout, state.revealed),
        "pendingPanel": state.pending_panel,
        "eliminated": list(state.eliminated),
        "winners": list(state.winners),
    }


# ---------------------------------------------------------------------------
# Variante solo
# ---------------------------------------------------------------------------
@dataclass
class SoloBridgeState:
    phase: str = PHASE_WAITING
    layout: List[str] = field(default_factory=list)
    current_step: int = 0
    revealed: List[bool] = field(default_factory=list)
    pending_panel: Optional[str] = None
    won: Optional[bool] = None


def start_solo(state: SoloBridgeState, rng: random.Random) -> SoloBridgeState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.layout = generate_layout(rng)
    nxt.revealed = [False] * len(nxt.layout)
    nxt.current_step = 0
    nxt.phase = PHASE_PLAYING
    return nxt


def choose_solo(state: SoloBridgeState, panel: str) -> SoloBridgeState:
    require_phase(state, PHASE_PLAYING)
    _check_side(panel)
    if state.pending_panel is not None:
        raise GameActionError("turn_locked")
    nxt = evolve(state)
    nxt.pending_panel = panel
    return nxt


def resolve_solo(state: SoloBridgeState) -> SoloBridgeState:
    require_phase(state, PHASE_PLAYING)
    if state.pending_panel is None:
        raise GameActionError("nothing_pending")
    nxt = evolve(state)
    step = nxt.current_step
    panel, nxt.pending_panel = nxt.pending_panel, None
    nxt.revealed[step] = True
    if panel != nxt.layout[step]:
        nxt.won = False
        nxt.phase = PHASE_FINISHED
        return nxt
    nxt.current_step += 1
    if nxt.current_step >= len(nxt.layout):
        nxt.won = True
        nxt.phase = PHASE_FINISHED
    return nxt


def solo_view(state: SoloBridgeState) -> dict:
    return {
        "game": GAME_ID,
        "mode": "solo",
        "phase": state.phase,
        "numSteps": len(state.layout) or NUM_STEPS,
        "currentStep": state.current_step,
        "steps": _steps_view(state.layout, state.revealed),
        "pendingPanel": state.pending_panel,
        "won": state.won,
    }
