"""
Marbles (jeu de parité, manche 4).

waiting → guessing → revealing → finished

Le nombre de billes est tiré au démarrage et reste caché dans la vue publique
jusqu'à la révélation (REVEAL_DELAY secondes après le choix).
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Optional

from .base import PHASE_FINISHED, PHASE_WAITING, GameActionError, evolve, require_phase

GAME_ID = "marbles"
REWARD = 250

MIN_MARBLES = 1
MAX_MARBLES = 20
REVEAL_DELAY = 3.0

PHASE_GUESSING = "guessing"
PHASE_REVEALING = "revealing"

GUESSES = ("odd", "even")


@dataclass
class MarblesState:
    phase: str = PHASE_WAITING
    count: Optional[int] = None
    guess: Optional[str] = None
    correct: Optional[bool] = None


def is_correct(guess: str, count: int) -> bool:
    return (guess == "even") == (count % 2 == 0)


def start(state: MarblesState, rng: random.Random) -> MarblesState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.count = rng.randint(MIN_MARBLES, MAX_MARBLES)
    nxt.phase = PHASE_GUESSING
    return nxt


def guess(state: MarblesState, choice: str) -> MarblesState:
    require_phase(state, PHASE_GUESSING)
    if choice not in GUESSES:
        raise GameActionError("invalid_guess")
    nxt = evolve(state)
    nxt.guess = choice
    nxt.phase = PHASE_REVEALING
    return nxt


def reveal(state: MarblesState) -> MarblesState:
    require_phase(state, PHASE_REVEALING)
    nxt = evolve(state)
    nxt.correct = is_correct(nxt.guess, nxt.count)
    nxt.phase = PHASE_FINISHED
    return nxt


def public_view(state: MarblesState) -> dict:
    return {
        "game": GAME_ID,
        "phase": state.phase,
        "guess": state.guess,
        "count": state.count if state.phase == PHASE_FINISHED else None,
        "correct": state.correct,
    }
