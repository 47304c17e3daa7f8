"""
Socle commun des mini-jeux.

Chaque module de jeu est une machine d'état pure :
- l'état est une dataclass copiée à chaque transition,
- les transitions prennent un état et renvoient le suivant (l'entrée n'est jamais modifiée),
- l'aléatoire passe par un `random.Random` injecté.

Les issues sont des couples (player_id, survived) que le moteur de manche transforme en
élimination ou en récompense.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, TypeVar

PHASE_WAITING = "waiting"
PHASE_PLAYING = "playing"
PHASE_FINISHED = "finished"

T = TypeVar("T")


class GameActionError(RuntimeError):
    """Action refusée par la machine d'état (mauvaise phase, pas son tour, verrou...)."""


@dataclass(frozen=True)
class Outcome:
    player_id: str
    survived: bool


def evolve(state: T) -> T:
    """Copie profonde de l'état courant, point de départ de chaque transition."""
    return copy.deepcopy(state)


def require_phase(state: Any, *phases: str) -> None:
    if state.phase not in phases:
        raise GameActionError(f"invalid_phase:{state.phase}")
