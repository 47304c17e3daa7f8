"""
Utils: team_utils.py
Rôle:
- Former des équipes aléatoires et des ordres de passage à partir d'une liste de player_ids.

Comportement:
- `random_teams` mélange puis découpe en blocs contigus: les premières équipes reçoivent
  le joueur en trop (avec 2 équipes, l'équipe "1" a la moitié arrondie au supérieur).
- `turn_order` renvoie simplement une copie mélangée.
- Le `rng` est injecté pour rejouer le tirage (tests / fairness).
"""
import math
import random
from typing import Dict, List, Optional


def random_teams(
    players: List[str],
    rng: Optional[random.Random] = None,
    team_count: int = 2,
) -> Dict[str, List[str]]:
    """
    Répartit une liste de joueurs en `team_count` équipes aléatoires.

    Returns:
        Dict[str, List[str]]: mapping "1"→[pids], "2"→[pids], etc.
        Les équipes vides sont conservées (une partie à 1 joueur garde une équipe "2" vide).
    """
    rng = rng or random
    team_count = max(1, int(team_count))
    pool = list(players)
    rng.shuffle(pool)

    teams: Dict[str, List[str]] = {}
    start = 0
    remaining = len(pool)
    for i in range(team_count):
        # ceil sur le reste: les premières équipes absorbent l'excédent
        size = math.ceil(remaining / (team_count - i))
        teams[str(i + 1)] = pool[start:start + size]
        start += size
        remaining -= size
    return teams


def turn_order(players: List[str], rng: Optional[random.Random] = None) -> List[str]:
    """Ordre de passage aléatoire (copie, la liste d'entrée n'est pas modifiée)."""
    rng = rng or random
    pool = list(players)
    rng.shuffle(pool)
    return pool
