"""
Module routes/admin.py
Rôle:
- Endpoints admin pour piloter les sessions: création, avancement des manches, démarrage,
  horloge manuelle, élimination, forfait au pont de verre, journal, fin de session.
- Protégé par `admin_required` (cookie HttpOnly ou Bearer ADMIN_TOKEN) sur tout le router.

Intégrations:
- session_store: registre des sessions + moteurs de manche.
- GameSession.events_snapshot(): journal d'audit borné.
"""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from squidparty.deps.auth import admin_required
from squidparty.deps.errors import translate_errors
from squidparty.models.event import Event
from squidparty.services.session_store import (
    create_session,
    end_session,
    find_session,
    get_round_engine,
    get_session,
    list_session_codes,
)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(admin_required)],  # ← garde-fou admin sur tout le router
)


class CreatePayload(BaseModel):
    code: Optional[str] = Field(default=None, pattern="^[A-Za-z0-9]{4,12}$", description="Code imposé (sinon tiré au hasard)")
    tugOfWarMode: Optional[Literal["team", "solo"]] = None
    glassBridgeMode: Optional[Literal["team", "solo"]] = None


class StartPayload(BaseModel):
    player_id: Optional[str] = None


class TickPayload(BaseModel):
    count: int = Field(1, ge=1, le=1000)


@router.post("/games")
async def create_game(payload: CreatePayload):
    """Crée une session (lobby, manche 0) et renvoie son snapshot."""
    options = {"tugOfWarMode": payload.tugOfWarMode, "glassBridgeMode": payload.glassBridgeMode}
    with translate_errors():
        session = create_session(payload.code, options)
        return session.require()


@router.get("/games")
async def list_games():
    """Sessions existantes avec un résumé (manche, statut, joueurs vivants/total)."""
    games = []
    for code in list_session_codes():
        session = find_session(code)
        snap = session.snapshot() if session else None
        if snap is None:
            continue
        players = snap.get("players") or {}
        games.append({
            "code": code,
            "status": snap.get("status"),
            "currentRound": snap.get("currentRound"),
            "players": len(players),
            "alive": sum(1 for p in players.values() if not p.get("isEliminated")),
        })
    return {"games": games}


@router.post("/games/{code}/advance")
async def advance(code: str):
    """Manche suivante (efface les sous-états, annule les timers de la manche précédente)."""
    with translate_errors():
        engine = get_round_engine(code)
        current = engine.advance_round()
        return {"ok": True, "currentRound": current, "round": engine.status()}


@router.post("/games/{code}/round/start")
async def start(code: str, payload: StartPayload):
    """Démarre la manche (solo sans player_id: tous les joueurs vivants)."""
    with translate_errors():
        return get_round_engine(code).start(player_id=payload.player_id, admin=True)


@router.post("/games/{code}/round/tick")
async def tick(code: str, payload: TickPayload):
    """Avance manuellement les comptes à rebours (ROUND_TIMERS_ENABLED=false)."""
    with translate_errors():
        return get_round_engine(code).tick(payload.count)


@router.post("/games/{code}/players/{player_id}/eliminate")
async def eliminate(code: str, player_id: str):
    with translate_errors():
        changed = get_session(code).eliminate(player_id, reason="admin")
    return {"ok": True, "player_id": player_id, "changed": changed}


@router.post("/games/{code}/glass-bridge/skip")
async def skip_bridge_turn(code: str):
    """Forfait du joueur dont c'est le tour (compte comme une chute)."""
    with translate_errors():
        return get_round_engine(code).bridge_skip_turn()


@router.get("/games/{code}/events", response_model=List[Event])
async def events(code: str, limit: int = Query(100, ge=1, le=2000)):
    """Derniers événements du journal d'audit."""
    with translate_errors():
        return get_session(code).events_snapshot()[-limit:]


@router.delete("/games/{code}")
async def end(code: str):
    """Termine la session: timers annulés, nœud supprimé, WebSockets fermés."""
    with translate_errors():
        end_session(code)
    return {"ok": True, "code": code.upper()}
