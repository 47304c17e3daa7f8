"""
Service: view_router.py
Rôle:
- Déterminer l'écran d'un joueur à partir du snapshot de session (`games/{code}`).

Priorités (la première règle qui s'applique gagne):
1) session absente                 → game-over (session terminée ou supprimée)
2) joueur éliminé                  → game-over (prime sur tout le reste)
3) currentRound > 6                → game-over (toutes les manches terminées)
4) lobby / manche 0                → lobby
5) joueur absent du roster         → not-joined
6) manche courante déjà survécue   → lobby ("You survived the round!")
7) sinon                           → écran du jeu de la manche
"""
from typing import Any, Dict, Optional

from squidparty.games.catalog import CATALOG, FINAL_ROUND

MSG_SESSION_ENDED = "The game session has ended or was deleted."
MSG_ELIMINATED = "You have been eliminated!"
MSG_COMPLETED = "All games completed! Congratulations! You are the last survivor."
MSG_SURVIVED = "You survived the round!"
MSG_NOT_JOINED = "You are eliminated or not joined!"


def _view(view: str, message: Optional[str] = None) -> Dict[str, Any]:
    return {"view": view, "message": message}


def resolve_view(snapshot: Optional[Dict[str, Any]], player_id: Optional[str]) -> Dict[str, Any]:
    if snapshot is None:
        return _view("game-over", MSG_SESSION_ENDED)

    players = snapshot.get("players") or {}
    player = players.get(player_id) if player_id else None
    if player is not None and player.get("isEliminated"):
        return _view("game-over", MSG_ELIMINATED)

    current = int(snapshot.get("currentRound", 0))
    if current > FINAL_ROUND:
        return _view("game-over", MSG_COMPLETED)
    if snapshot.get("status") == "lobby" or current == 0:
        return _view("lobby")

    if player is None:
        return _view("not-joined", MSG_NOT_JOINED)
    if int(player.get("clearedRound", 0)) >= current:
        return _view("lobby", MSG_SURVIVED)

    entry = CATALOG.for_round(current)
    return _view(entry.view)
