"""
Service: session_state.py
Rôle :
- Manipuler une session de jeu stockée dans le realtime store sous `games/{code}`.
- Tenir le journal d'audit append-only de la session.

Stockage :
- store `games/{code}` : code, status, currentRound, createdAt, options, players, sous-états de manche
- disque `sessions/{code}/events.ndjson` : journal (borné à MAX_AUDIT_EVENTS)

Invariants :
- `currentRound` ne décroît jamais; 7 = toutes les manches terminées, au-delà → SessionCompleted.
- `isEliminated` ne repasse jamais à False (re-join compris).
- Les joueurs ne sont jamais supprimés en cours de session.
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional
from uuid import uuid4

from squidparty.config.settings import settings
from squidparty.games.catalog import COMPLETED_ROUND
from squidparty.models.event import Event
from squidparty.models.game import SessionOptions
from squidparty.models.player import Player
from .io_utils import append_ndjson, read_ndjson, write_ndjson
from .realtime_store import RealtimeStore

logger = logging.getLogger(__name__)

GAMES_ROOT = "games"
SESSIONS_DIR = Path(settings.DATA_DIR) / "sessions"
EVENTS_FILENAME = "events.ndjson"
MAX_AUDIT_EVENTS = 2000

# un player_id sert de segment de chemin dans le store (`players/{id}`)
PLAYER_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"
_PLAYER_ID_RE = re.compile(PLAYER_ID_PATTERN)

STATUS_LOBBY = "lobby"
STATUS_PLAYING = "playing"

# sous-états effacés à chaque changement de manche
ROUND_KEYS = ("redLight", "tugOfWar", "glassBridge", "play")


class SessionNotFound(LookupError):
    pass


class SessionAlreadyExists(RuntimeError):
    pass


class PlayerNotFound(LookupError):
    pass


class PlayerEliminated(PermissionError):
    pass


class InvalidPlayer(ValueError):
    pass


class SessionCompleted(RuntimeError):
    pass


def game_path(code: str, *parts: str) -> str:
    return "/".join((GAMES_ROOT, code) + parts)


def _default_options() -> Dict[str, str]:
    return SessionOptions(
        tugOfWarMode=settings.TUG_OF_WAR_MODE,
        glassBridgeMode=settings.GLASS_BRIDGE_MODE,
    ).model_dump()


@dataclass
class GameSession:
    code: str
    store: RealtimeStore
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)
    events: List[Dict[str, Any]] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        self.events = read_ndjson(self._events_path())[-MAX_AUDIT_EVENTS:]

    # -----------------------------
    # Création
    # -----------------------------
    @classmethod
    def create(cls, store: RealtimeStore, code: str, options: Optional[Dict[str, Any]] = None) -> "GameSession":
        """Écrit un nœud de session vierge (lobby, manche 0, roster vide)."""
        merged = _default_options()
        merged.update({k: v for k, v in (options or {}).items() if v is not None})
        node = {
            "code": code,
            "status": STATUS_LOBBY,
            "currentRound": 0,
            "createdAt": time.time(),
            "options": SessionOptions(**merged).model_dump(),
            "players": {},
        }

        def _init(current):
            if current is not None:
                raise SessionAlreadyExists(code)
            return node

        store.transaction(game_path(code), _init)
        # un code réutilisé repart d'un journal vierge
        (SESSIONS_DIR / code / EVENTS_FILENAME).unlink(missing_ok=True)
        session = cls(code=code, store=store)
        session.log_event("session_created", {"code": code, "options": node["options"]}, scope="admin")
        logger.info("Session created", extra={"session_code": code})
        return session

    # -----------------------------
    # Lecture
    # -----------------------------
    @property
    def path(self) -> str:
        return game_path(self.code)

    def snapshot(self) -> Optional[Dict[str, Any]]:
        return self.store.get(self.path)

    def exists(self) -> bool:
        return self.store.exists(self.path)

    def require(self) -> Dict[str, Any]:
        snap = self.snapshot()
        if snap is None:
            raise SessionNotFound(self.code)
        return snap

    @property
    def current_round(self) -> int:
        return int(self.require().get("currentRound", 0))

    @property
    def status(self) -> str:
        return self.require().get("status", STATUS_LOBBY)

    def options(self) -> Dict[str, Any]:
        return self.require().get("options") or _default_options()

    def players(self) -> Dict[str, Dict[str, Any]]:
        return self.require().get("players") or {}

    def player(self, player_id: str) -> Dict[str, Any]:
        record = self.players().get(player_id)
        if record is None:
            raise PlayerNotFound(player_id)
        return record

    def require_active_player(self, player_id: Optional[str]) -> Dict[str, Any]:
        """Joueur connu et non éliminé, sinon PlayerNotFound / PlayerEliminated."""
        record = self.player(player_id or "")
        if record.get("isEliminated"):
            raise PlayerEliminated(player_id)
        return record

    def alive_player_ids(self) -> List[str]:
        """Joueurs vivants, triés par numéro de dossard."""
        alive = [p for p in self.players().values() if not p.get("isEliminated")]
        alive.sort(key=lambda p: p.get("number", 0))
        return [p["id"] for p in alive]

    # -----------------------------
    # Joueurs
    # -----------------------------
    def add_player(self, name: str, player_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Inscrit un joueur (transaction: deux joins simultanés n'obtiennent pas le même numéro).
        Un `player_id` déjà présent renvoie l'enregistrement existant sans le modifier.
        """
        name = (name or "").strip()
        if not name:
            raise InvalidPlayer("invalid_name")
        pid = (player_id or "").strip() or uuid4().hex
        if not _PLAYER_ID_RE.match(pid):
            raise InvalidPlayer("invalid_player_id")
        result: Dict[str, Any] = {}

        def _join(current):
            if current is None:
                raise SessionNotFound(self.code)
            roster = current.setdefault("players", {})
            if pid in roster:
                result.update(roster[pid], rejoined=True)
                return current
            player = Player(id=pid, name=name, number=len(roster) + 1).model_dump()
            roster[pid] = player
            result.update(player, rejoined=False)
            return current

        self.store.transaction(self.path, _join)
        rejoined = result.pop("rejoined")
        if not rejoined:
            self.log_event("player_join", {"player_id": pid, "name": name, "number": result["number"]}, scope="player")
            logger.info("Player joined", extra={"session_code": self.code, "player_id": pid})
        return result

    def eliminate(self, player_id: str, reason: str = "round_failed") -> bool:
        """Passe `isEliminated` à True. Renvoie False si le joueur l'était déjà."""
        changed = False

        def _flag(current):
            nonlocal changed
            if current is None:
                raise PlayerNotFound(player_id)
            if not current.get("isEliminated"):
                current["isEliminated"] = True
                changed = True
            return current

        with self._lock:
            self.require()
            self.store.transaction(self.path + "/players/" + player_id, _flag)
        if changed:
            self.log_event("player_eliminated", {"player_id": player_id, "reason": reason}, scope="round")
            logger.info("Player eliminated", extra={"session_code": self.code, "player_id": player_id})
        return changed

    def reward(self, player_id: str, coins: int, round_number: int) -> Dict[str, Any]:
        """Crédite la récompense de manche et marque la manche comme survécue."""

        def _credit(current):
            if current is None:
                raise PlayerNotFound(player_id)
            current["coins"] = int(current.get("coins", 0)) + int(coins)
            current["clearedRound"] = max(int(current.get("clearedRound", 0)), int(round_number))
            return current

        with self._lock:
            self.require()
            record = self.store.transaction(self.path + "/players/" + player_id, _credit)
        self.log_event(
            "player_rewarded",
            {"player_id": player_id, "coins": coins, "round": round_number},
            scope="round",
        )
        return record

    # -----------------------------
    # Manches
    # -----------------------------
    def advance_round(self) -> int:
        """
        Manche suivante: currentRound + 1, status playing, sous-états effacés.
        Une seule mise à jour multi-chemins.
        """
        with self._lock:
            current = int(self.require().get("currentRound", 0))
            if current >= COMPLETED_ROUND:
                raise SessionCompleted(self.code)
            nxt = current + 1
            update: Dict[str, Any] = {"currentRound": nxt, "status": STATUS_PLAYING}
            update.update({key: None for key in ROUND_KEYS})
            self.store.update(self.path, update)
        self.log_event("round_advanced", {"from": current, "to": nxt}, scope="admin")
        logger.info("Round advanced", extra={"session_code": self.code, "round": nxt})
        return nxt

    def write_round_state(self, key: str, value: Optional[Dict[str, Any]]) -> None:
        self.require()
        self.store.set(self.path + "/" + key, value)

    def write_player_round(self, player_id: str, value: Optional[Dict[str, Any]]) -> None:
        self.require()
        self.store.set(self.path + "/play/" + player_id, value)

    def end(self) -> None:
        """Supprime le nœud: tous les abonnés reçoivent None."""
        self.store.remove(self.path)
        self.log_event("session_ended", {"code": self.code}, scope="admin")
        logger.info("Session ended", extra={"session_code": self.code})

    # -----------------------------
    # Journal d'audit
    # -----------------------------
    def _events_path(self) -> Path:
        return SESSIONS_DIR / self.code / EVENTS_FILENAME

    def log_event(self, kind: str, payload: Dict[str, Any], scope: str = "system") -> Dict[str, Any]:
        """Ajoute une entrée au journal (mémoire + disque), avec bornage."""
        entry = Event(id=str(uuid4()), kind=kind, scope=scope, payload=payload, ts=time.time()).model_dump()
        with self._lock:
            self.events.append(entry)
            if len(self.events) > MAX_AUDIT_EVENTS:
                del self.events[: len(self.events) - MAX_AUDIT_EVENTS]
                write_ndjson(self._events_path(), self.events)
            else:
                append_ndjson(self._events_path(), entry)
        return entry

    def events_snapshot(self) -> List[Dict[str, Any]]:
        """Retourne une copie des événements courants."""
        with self._lock:
            return [event.copy() for event in self.events]
