"""
Module routes/game.py
Rôle:
- Lecture publique d'une session: snapshot complet, écran d'un joueur, classement.

Notes:
- Le snapshot est celui du store (`games/{code}`), tel que diffusé sur le WebSocket.
- La vue est calculée par `resolve_view` (même règle que côté client).
"""
from typing import Optional

from fastapi import APIRouter, Query

from squidparty.deps.errors import translate_errors
from squidparty.models.game import SessionSnapshot, ViewState
from squidparty.services.session_store import find_session, get_session
from squidparty.services.view_router import resolve_view

router = APIRouter(prefix="/games", tags=["game"])


@router.get("/{code}", response_model=SessionSnapshot, response_model_exclude_none=True)
async def session_snapshot(code: str):
    """Snapshot brut de la session."""
    with translate_errors():
        return get_session(code).require()


@router.get("/{code}/view", response_model=ViewState)
async def player_view(code: str, player_id: Optional[str] = Query(default=None)):
    """Écran à afficher pour `player_id` (une session absente renvoie game-over, pas 404)."""
    session = find_session(code)
    snapshot = session.snapshot() if session else None
    return resolve_view(snapshot, player_id)


@router.get("/{code}/leaderboard")
async def leaderboard(code: str):
    """Classement des joueurs par cagnotte décroissante (numéro en départage)."""
    with translate_errors():
        players = get_session(code).players()
    rows = [
        {
            "player_id": pid,
            "name": p.get("name"),
            "number": p.get("number"),
            "coins": p.get("coins", 0),
            "isEliminated": p.get("isEliminated", False),
        }
        for pid, p in players.items()
    ]
    rows.sort(key=lambda r: (-r["coins"], r["number"] or 0))
    return {"leaderboard": rows}
