# squidparty/routes/websocket.py
"""
WebSocket endpoint.

- /ws/session/{code} : flux temps réel d'une session.
  1er message {"type":"session_state","payload":snapshot}, puis un `session_state` à chaque
  écriture du store sous `games/{code}`. Fin de session → {"type":"session_ended"} puis
  fermeture. Une session inconnue reçoit directement `session_ended`.
  Messages client: {"type":"identify","player_id":...}, {"type":"ping"}.
"""
from __future__ import annotations

from fastapi import APIRouter, WebSocket

from squidparty.services.ws_manager import WS
from squidparty.utils.codes import normalize_code

router = APIRouter()


@router.websocket("/ws/session/{code}")
async def websocket_session_stream(ws: WebSocket, code: str):
    conn = await WS.connect(normalize_code(code), ws)
    await WS.serve(conn)
