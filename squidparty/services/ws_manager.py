# squidparty/services/ws_manager.py
"""
Service: ws_manager.py
- Un canal par session (`games/{code}`): ensemble de connexions + un abonnement au store.
- Chaque connexion possède sa file asyncio et sa loop; les publications passent par
  `loop.call_soon_threadsafe` (le store peut notifier depuis n'importe quel thread).
- Chaque écriture du store sous `games/{code}` pousse un `session_state` complet;
  la disparition du nœud pousse `session_ended` puis ferme les sockets du canal.
- Identification optionnelle (player_id) pour stats / kick.
- Admin: stats(), kick_player(), close_all().
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Dict, List, Optional, Set

import anyio
import orjson
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from .realtime_store import RealtimeStore, Subscription
from .session_state import game_path
from .session_store import STORE

logger = logging.getLogger(__name__)

# fin de flux: le sender ferme la socket
_CLOSE = None

# chaque message porte un snapshot complet: au-delà, les plus anciens sont jetés
QUEUE_MAXSIZE = 64


@dataclass(eq=False)
class Connection:
    code: str
    ws: WebSocket
    loop: asyncio.AbstractEventLoop
    queue: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=QUEUE_MAXSIZE))
    player_id: Optional[str] = None
    dropped: int = 0

    def _enqueue(self, message: Optional[Dict[str, Any]]) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(message)

    def push(self, message: Optional[Dict[str, Any]]) -> bool:
        """Dépose un message dans la file (thread-safe). False si la loop est fermée."""
        try:
            self.loop.call_soon_threadsafe(self._enqueue, message)
            return True
        except RuntimeError:
            return False


def state_message(code: str, snapshot: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if snapshot is None:
        return {"type": "session_ended", "payload": {"code": code}}
    return {"type": "session_state", "payload": snapshot}


@dataclass
class WSManager:
    store: RealtimeStore
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    # code -> connexions
    channels: Dict[str, Set[Connection]] = field(default_factory=dict)
    # code -> abonnement store (un seul par canal)
    subscriptions: Dict[str, Subscription] = field(default_factory=dict)

    async def connect(self, code: str, ws: WebSocket) -> Connection:
        """Accepte la connexion, l'ajoute au canal et pousse le snapshot initial."""
        await ws.accept()
        conn = Connection(code=code, ws=ws, loop=asyncio.get_running_loop())
        with self._lock:
            self.channels.setdefault(code, set()).add(conn)
            need_subscription = code not in self.subscriptions
        # le store est toujours verrouillé avant le manager (notifications), jamais l'inverse
        if need_subscription:
            sub = self.store.subscribe(
                game_path(code),
                lambda snapshot, code=code: self._on_change(code, snapshot),
                immediate=False,
            )
            with self._lock:
                duplicate = code in self.subscriptions
                if not duplicate:
                    self.subscriptions[code] = sub
            if duplicate:
                sub.cancel()
        snapshot = self.store.get(game_path(code))
        conn.push(state_message(code, snapshot))
        if snapshot is None:
            conn.push(_CLOSE)
        return conn

    def _on_change(self, code: str, snapshot: Optional[Dict[str, Any]]) -> None:
        message = state_message(code, snapshot)
        for conn in self._snapshot_channel(code):
            if not conn.push(message):
                self._unlink(conn)
                continue
            if snapshot is None:
                conn.push(_CLOSE)

    def _unlink(self, conn: Connection) -> None:
        """Retire la connexion; le dernier départ d'un canal annule l'abonnement store."""
        sub = None
        with self._lock:
            bucket = self.channels.get(conn.code)
            if bucket is None:
                return
            bucket.discard(conn)
            if not bucket:
                self.channels.pop(conn.code, None)
                sub = self.subscriptions.pop(conn.code, None)
        if sub is not None:
            sub.cancel()

    async def disconnect(self, conn: Connection) -> None:
        """Ferme proprement la connexion et nettoie les registres."""
        self._unlink(conn)
        if conn.ws.client_state != WebSocketState.DISCONNECTED:
            try:
                await conn.ws.close()
            except RuntimeError:
                pass

    def identify(self, conn: Connection, player_id: str) -> None:
        with self._lock:
            conn.player_id = player_id

    # ---------- snapshots immuables ----------
    def _snapshot_channel(self, code: str) -> List[Connection]:
        with self._lock:
            return list(self.channels.get(code, set()))

    def _snapshot_all(self) -> List[Connection]:
        with self._lock:
            result: List[Connection] = []
            for bucket in self.channels.values():
                result.extend(bucket)
            return result

    # ---------- boucle de connexion ----------
    async def _sender(self, conn: Connection) -> None:
        while True:
            message = await conn.queue.get()
            if message is _CLOSE:
                return
            try:
                await conn.ws.send_text(orjson.dumps(message).decode())
            except (WebSocketDisconnect, RuntimeError):
                logger.debug("WS send failed", extra={"session_code": conn.code})
                return

    async def _receiver(self, conn: Connection) -> None:
        while True:
            try:
                raw = await conn.ws.receive_text()
            except (WebSocketDisconnect, RuntimeError):
                return
            try:
                msg = orjson.loads(raw)
            except orjson.JSONDecodeError:
                # message non JSON -> ignoré
                continue
            if not isinstance(msg, dict):
                continue
            mtype = msg.get("type")
            if mtype == "identify":
                payload = msg.get("payload") or {}
                pid = str(msg.get("player_id") or payload.get("player_id") or "").strip()
                if pid:
                    self.identify(conn, pid)
                    conn.push({"type": "identified", "player_id": pid})
                else:
                    conn.push({"type": "error", "error": "missing player_id"})
            elif mtype == "ping":
                conn.push({"type": "pong"})
            else:
                conn.push({"type": "ack", "received": msg})

    async def serve(self, conn: Connection) -> None:
        """Sender et receiver en parallèle; le premier qui se termine annule l'autre."""
        try:
            async with anyio.create_task_group() as task_group:

                async def run_receiver() -> None:
                    await self._receiver(conn)
                    task_group.cancel_scope.cancel()

                task_group.start_soon(run_receiver)
                await self._sender(conn)
                task_group.cancel_scope.cancel()
        finally:
            await self.disconnect(conn)

    # ---------- admin ----------
    def stats(self) -> dict:
        with self._lock:
            channels = {}
            for code, conns in self.channels.items():
                channels[code] = {
                    "connections": len(conns),
                    "identified": sorted(c.player_id for c in conns if c.player_id),
                    "dropped": sum(c.dropped for c in conns),
                }
            return {
                "channels": channels,
                "connections_total": sum(len(c) for c in self.channels.values()),
                "subscriptions": len(self.subscriptions),
            }

    def kick_player(self, player_id: str) -> int:
        """Ferme toutes les sockets identifiées pour ce joueur."""
        conns = [c for c in self._snapshot_all() if c.player_id == player_id]
        for conn in conns:
            conn.push(_CLOSE)
        return len(conns)

    def close_all(self) -> dict:
        """Ferme toutes les sockets de tous les canaux."""
        for conn in self._snapshot_all():
            conn.push(_CLOSE)
        return self.stats()


WS = WSManager(store=STORE)
