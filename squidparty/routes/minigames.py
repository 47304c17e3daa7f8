"""
Mini-games routes (joueurs).
Each action is applied server-side by the session's `RoundEngine`; the engine checks that
the session is playing, that the action belongs to the current round's game and that the
player is known and still alive. Responses carry the round status for that player.

The handlers are `async` on purpose: round timers are scheduled on the running loop.
"""
from __future__ import annotations

from typing import List, Literal, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from squidparty.deps.errors import translate_errors
from squidparty.services.session_store import get_round_engine

router = APIRouter(prefix="/games/{code}/round", tags=["minigames"])


class PlayerPayload(BaseModel):
    player_id: str


class MovePayload(PlayerPayload):
    moving: bool


class StrokePayload(PlayerPayload):
    points: List[List[float]] = Field(..., min_length=1, description="Points [x, y] du trait")
    new_stroke: bool = Field(False, description="True: repartir de zéro (pointeur posé)")


class GuessPayload(PlayerPayload):
    guess: Literal["odd", "even"]


class StepPayload(PlayerPayload):
    panel: Literal["left", "right"]


class CombatPayload(PlayerPayload):
    action: Literal["attack", "defend"]


@router.get("")
async def round_status(code: str, player_id: Optional[str] = Query(default=None)):
    """Jeu courant, état partagé et état solo du joueur."""
    with translate_errors():
        return get_round_engine(code).status(player_id)


@router.post("/start")
async def start_round(code: str, payload: PlayerPayload):
    """Démarre la machine partagée (premier arrivé) ou la machine solo du joueur."""
    with translate_errors():
        return get_round_engine(code).start(player_id=payload.player_id)


@router.post("/red-light/move")
async def red_light_move(code: str, payload: MovePayload):
    with translate_errors():
        return get_round_engine(code).red_light_move(payload.player_id, payload.moving)


@router.post("/honeycomb/stroke")
async def honeycomb_stroke(code: str, payload: StrokePayload):
    """Premier point = début de trait si `new_stroke`, le reste est ajouté au tracé."""
    with translate_errors():
        engine = get_round_engine(code)
        points = payload.points
        if payload.new_stroke:
            status = engine.honeycomb_begin_stroke(payload.player_id, points[0])
            points = points[1:]
        if points or not payload.new_stroke:
            status = engine.honeycomb_extend_stroke(payload.player_id, points)
        return status


@router.post("/honeycomb/submit")
async def honeycomb_submit(code: str, payload: PlayerPayload):
    with translate_errors():
        return get_round_engine(code).honeycomb_submit(payload.player_id)


@router.post("/tug-of-war/pull")
async def tug_pull(code: str, payload: PlayerPayload):
    with translate_errors():
        return get_round_engine(code).tug_pull(payload.player_id)


@router.post("/marbles/guess")
async def marbles_guess(code: str, payload: GuessPayload):
    with translate_errors():
        return get_round_engine(code).marbles_guess(payload.player_id, payload.guess)


@router.post("/glass-bridge/step")
async def glass_bridge_step(code: str, payload: StepPayload):
    with translate_errors():
        return get_round_engine(code).bridge_choose(payload.player_id, payload.panel)


@router.post("/squid-game/move")
async def squid_game_move(code: str, payload: CombatPayload):
    with translate_errors():
        return get_round_engine(code).combat_choose(payload.player_id, payload.action)
