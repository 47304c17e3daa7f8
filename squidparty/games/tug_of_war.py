"""
Tug of War (manche 3).

Deux variantes:
- `team`  : une seule machine par session, joueurs vivants répartis en deux équipes.
            Chaque `pull` ajoute PULL_STRENGTH à l'équipe du joueur (plafond 100).
            Atteindre 100 termine la manche; à l'expiration le total le plus haut gagne,
            l'égalité revient à l'équipe 2. L'équipe perdante est éliminée.
- `solo`  : un joueur contre un adversaire simulé qui gagne OPPONENT_STRENGTH par tick.
            Le premier à 100 gagne; à l'expiration l'égalité est perdue.
"""
from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .base import (
    PHASE_FINISHED,
    PHASE_PLAYING,
    PHASE_WAITING,
    GameActionError,
    Outcome,
    evolve,
    require_phase,
)
from ..utils.team_utils import random_teams

GAME_ID = "tug_of_war"
REWARD = 200

MAX_STRENGTH = 100
PULL_STRENGTH = 3

TEAM_TICK_SECONDS = 1.0
TEAM_ROUND_TICKS = 30

SOLO_TICK_SECONDS = 0.5
SOLO_ROUND_TICKS = 60
OPPONENT_STRENGTH = 2

TICK_SECONDS = TEAM_TICK_SECONDS


# ---------------------------------------------------------------------------
# Variante équipe
# ---------------------------------------------------------------------------
@dataclass
class TeamTugState:
    phase: str = PHASE_WAITING
    ticks_left: int = TEAM_ROUND_TICKS
    team1_strength: int = 0
    team2_strength: int = 0
    teams: Dict[str, List[str]] = field(default_factory=lambda: {"1": [], "2": []})
    winner: Optional[int] = None


def start_team(state: TeamTugState, player_ids: List[str], rng: random.Random) -> TeamTugState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.teams = random_teams(player_ids, rng)
    nxt.ticks_left = TEAM_ROUND_TICKS
    nxt.team1_strength = 0
    nxt.team2_strength = 0
    nxt.phase = PHASE_PLAYING
    return nxt


def team_of(state: TeamTugState, player_id: str) -> Optional[int]:
    for key, members in state.teams.items():
        if player_id in members:
            return int(key)
    return None


def _decide(state: TeamTugState, winner: int) -> None:
    state.winner = winner
    state.phase = PHASE_FINISHED


def pull_team(state: TeamTugState, player_id: str) -> TeamTugState:
    require_phase(state, PHASE_PLAYING)
    team = team_of(state, player_id)
    if team is None:
        raise GameActionError("not_in_round")
    nxt = evolve(state)
    if team == 1:
        nxt.team1_strength = min(nxt.team1_strength + PULL_STRENGTH, MAX_STRENGTH)
        if nxt.team1_strength >= MAX_STRENGTH:
            _decide(nxt, 1)
    else:
        nxt.team2_strength = min(nxt.team2_strength + PULL_STRENGTH, MAX_STRENGTH)
        if nxt.team2_strength >= MAX_STRENGTH:
            _decide(nxt, 2)
    return nxt


def tick_team(state: TeamTugState) -> TeamTugState:
    if state.phase != PHASE_PLAYING:
        return state
    nxt = evolve(state)
    nxt.ticks_left -= 1
    if nxt.ticks_left <= 0:
        nxt.ticks_left = 0
        _decide(nxt, 1 if nxt.team1_strength > nxt.team2_strength else 2)
    return nxt


def team_outcomes(state: TeamTugState) -> List[Outcome]:
    if state.phase != PHASE_FINISHED or state.winner is None:
        return []
    outcomes = []
    for key, members in state.teams.items():
        survived = int(key) == state.winner
        outcomes.extend(Outcome(pid, survived) for pid in members)
    return outcomes


def team_view(state: TeamTugState) -> dict:
    return {
        "game": GAME_ID,
        "mode": "team",
        "phase": state.phase,
        "timer": int(state.ticks_left * TEAM_TICK_SECONDS),
        "team1Strength": state.team1_strength,
        "team2Strength": state.team2_strength,
        "teams": {key: list(members) for key, members in state.teams.items()},
        "winner": state.winner,
    }


# ---------------------------------------------------------------------------
# Variante solo
# ---------------------------------------------------------------------------
@dataclass
class SoloTugState:
    phase: str = PHASE_WAITING
    ticks_left: int = SOLO_ROUND_TICKS
    player_strength: int = 0
    opponent_strength: int = 0
    won: Optional[bool] = None


def start_solo(state: SoloTugState) -> SoloTugState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.phase = PHASE_PLAYING
    nxt.ticks_left = SOLO_ROUND_TICKS
    return nxt


def pull_solo(state: SoloTugState) -> SoloTugState:
    require_phase(state, PHASE_PLAYING)
    nxt = evolve(state)
    nxt.player_strength = min(nxt.player_strength + PULL_STRENGTH, MAX_STRENGTH)
    if nxt.player_strength >= MAX_STRENGTH:
        nxt.won = True
        nxt.phase = PHASE_FINISHED
    return nxt


def tick_solo(state: SoloTugState) -> SoloTugState:
    if state.phase != PHASE_PLAYING:
        return state
    nxt = evolve(state)
    nxt.ticks_left -= 1
    nxt.opponent_strength = min(nxt.opponent_strength + OPPONENT_STRENGTH, MAX_STRENGTH)
    if nxt.opponent_strength >= MAX_STRENGTH:
        nxt.won = False
        nxt.phase = PHASE_FINISHED
    elif nxt.ticks_left <= 0:
        nxt.ticks_left = 0
        nxt.won = nxt.player_strength > nxt.opponent_strength
        nxt.phase = PHASE_FINISHED
    return nxt


def solo_view(state: SoloTugState) -> dict:
    return {
        "game": GAME_ID,
        "mode": "solo",
        "phase": state.phase,
        "secondsLeft": state.ticks_left * SOLO_TICK_SECONDS,
        "playerStrength": state.player_strength,
        "opponentStrength": state.opponent_strength,
        "won": state.won,
    }
