"""
Service: catalog.py
Rôle:
- Référentiel statique des six manches (ordre, identifiant, vue client, mode, récompense).
- Exposer `CATALOG.for_round(n)`, `CATALOG.get(game_id)` et `CATALOG.all()`.

Modes:
- "shared" : une machine par session, ouverte à tous les vivants (red light);
- "solo"   : une machine par joueur;
- "team|solo" : variante choisie par session (options.tugOfWarMode / glassBridgeMode).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from . import glass_bridge, honeycomb, marbles, red_light, squid_game, tug_of_war

FINAL_ROUND = 6
COMPLETED_ROUND = FINAL_ROUND + 1


@dataclass(frozen=True)
class GameEntry:
    round: int
    game_id: str
    view: str
    mode: str
    reward: int
    option_key: Optional[str] = None

    def resolve_mode(self, options: Optional[dict] = None) -> str:
        """Mode effectif: pour les jeux à variante, lu dans les options de session."""
        if self.option_key is None:
            return self.mode
        value = (options or {}).get(self.option_key)
        return value if value in ("team", "solo") else "team"


class GameCatalog:
    def __init__(self, entries: List[GameEntry]):
        self.by_round: Dict[int, GameEntry] = {e.round: e for e in entries}
        self.by_id: Dict[str, GameEntry] = {e.game_id: e for e in entries}

    def for_round(self, round_number: int) -> Optional[GameEntry]:
        return self.by_round.get(round_number)

    def get(self, game_id: str) -> Optional[GameEntry]:
        return self.by_id.get(game_id)

    def all(self) -> List[GameEntry]:
        return [self.by_round[n] for n in sorted(self.by_round)]


CATALOG = GameCatalog([
    GameEntry(1, red_light.GAME_ID, "red-light-green-light", "shared", red_light.REWARD),
    GameEntry(2, honeycomb.GAME_ID, "honeycomb", "solo", honeycomb.REWARD),
    GameEntry(3, tug_of_war.GAME_ID, "tug-of-war", "team|solo", tug_of_war.REWARD, "tugOfWarMode"),
    GameEntry(4, marbles.GAME_ID, "marbles", "solo", marbles.REWARD),
    GameEntry(5, glass_bridge.GAME_ID, "glass-bridge", "team|solo", glass_bridge.REWARD, "glassBridgeMode"),
    GameEntry(6, squid_game.GAME_ID, "squid-game", "solo", squid_game.REWARD),
])
