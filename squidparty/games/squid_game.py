"""
Squid Game (combat final, manche 6).

Le joueur et l'adversaire démarrent à 100 PV. À chaque tour:
1) `choose(action)` verrouille le tour et tire l'action adverse
   (`attack` si rng.random() > 0.5, sinon `defend`);
2) après RESOLVE_DELAY secondes, `resolve` applique les dégâts (jets dans [10, 29]).

Dégâts:
- attaque contre attaque : chacun subit son propre jet;
- attaque contre défense : le défenseur subit int(jet * DEFENDED_RATIO);
- défense contre défense : rien.

Les PV du joueur sont testés en premier: un double K.O. élimine le joueur.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .base import (
    PHASE_FINISHED,
    PHASE_PLAYING,
    PHASE_WAITING,
    GameActionError,
    evolve,
    require_phase,
)

GAME_ID = "squid_game"
REWARD = 1000

MAX_HEALTH = 100
DAMAGE_MIN = 10
DAMAGE_MAX = 29
DEFENDED_RATIO = 0.5
RESOLVE_DELAY = 1.5

ATTACK = "attack"
DEFEND = "defend"
ACTIONS = (ATTACK, DEFEND)


@dataclass
class CombatState:
    phase: str = PHASE_WAITING
    player_health: int = MAX_HEALTH
    opponent_health: int = MAX_HEALTH
    turn: int = 0
    player_action: Optional[str] = None
    opponent_action: Optional[str] = None
    last_player_damage: int = 0
    last_opponent_damage: int = 0
    won: Optional[bool] = None


def roll_damage(rng: random.Random) -> int:
    return rng.randint(DAMAGE_MIN, DAMAGE_MAX)


def start(state: CombatState) -> CombatState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.phase = PHASE_PLAYING
    return nxt


def choose(state: CombatState, action: str, rng: random.Random) -> CombatState:
    require_phase(state, PHASE_PLAYING)
    if action not in ACTIONS:
        raise GameActionError("invalid_action")
    if state.player_action is not None:
        raise GameActionError("turn_locked")
    nxt = evolve(state)
    nxt.player_action = action
    nxt.opponent_action = ATTACK if rng.random() > 0.5 else DEFEND
    return nxt


def resolve(state: CombatState, rng: random.Random) -> CombatState:
    require_phase(state, PHASE_PLAYING)
    if state.player_action is None:
        raise GameActionError("nothing_pending")
    nxt = evolve(state)
    to_player = to_opponent = 0
    mine, theirs = nxt.player_action, nxt.opponent_action
    if mine == ATTACK and theirs == ATTACK:
        to_opponent = roll_damage(rng)
        to_player = roll_damage(rng)
    elif mine == ATTACK:
        to_opponent = int(roll_damage(rng) * DEFENDED_RATIO)
    elif theirs == ATTACK:
        to_player = int(roll_damage(rng) * DEFENDED_RATIO)

    nxt.player_health = max(0, nxt.player_health - to_player)
    nxt.opponent_health = max(0, nxt.opponent_health - to_opponent)
    nxt.last_player_damage = to_player
    nxt.last_opponent_damage = to_opponent
    nxt.turn += 1
    nxt.player_action = None
    nxt.opponent_action = None

    if nxt.player_health <= 0:
        nxt.won = False
        nxt.phase = PHASE_FINISHED
    elif nxt.opponent_health <= 0:
        nxt.won = True
        nxt.phase = PHASE_FINISHED
    return nxt


def public_view(state: CombatState) -> dict:
    return {
        "game": GAME_ID,
        "phase": state.phase,
        "playerHealth": state.player_health,
        "opponentHealth": state.opponent_health,
        "turn": state.turn,
        "locked": state.player_action is not None,
        "playerAction": state.player_action,
        "lastPlayerDamage": state.last_player_damage,
        "lastOpponentDamage": state.last_opponent_damage,
        "won": state.won,
    }
