# squidparty/routes/debug_ws.py
"""
Module routes/debug_ws.py
Rôle:
- Utilitaires de debug WebSocket (montés seulement si DEBUG):
  - carte des canaux / connexions,
  - kick d'un joueur identifié, fermeture forcée de toutes les sockets.
"""
from typing import Any, Dict

from fastapi import APIRouter

from squidparty.services.ws_manager import WS

router = APIRouter(prefix="/debug/ws", tags=["debug-ws"])


@router.get("/peers")
def ws_peers() -> Dict[str, Any]:
    """Carte des connexions WS par session."""
    return WS.stats()


@router.post("/kick/{player_id}")
def kick_player(player_id: str):
    """Ferme toutes les sockets identifiées pour ce joueur."""
    n = WS.kick_player(player_id)
    return {"ok": True, "kicked": n, "player_id": player_id}


@router.post("/close_all")
def close_all():
    """Ferme toutes les sockets de toutes les sessions."""
    stats = WS.close_all()
    return {"ok": True, "stats": stats}
