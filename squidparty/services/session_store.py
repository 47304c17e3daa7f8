"""
Session store registry
======================

Point d'accès unique aux sessions:
- `STORE` : realtime store partagé (persisté dans `DATA_DIR/STORE_FILENAME` si STORE_PERSIST);
- cache `GameSession` / `RoundEngine` par code de session, initialisés à la demande.

Un code présent dans le store mais absent du cache (redémarrage) est rechargé à la volée.
"""
from __future__ import annotations

import logging
import shutil
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from squidparty.config.settings import settings
from squidparty.utils.codes import generate_code, normalize_code
from .realtime_store import RealtimeStore
from .round_engine import RoundEngine
from .session_state import GAMES_ROOT, SESSIONS_DIR, GameSession, SessionNotFound, game_path

logger = logging.getLogger(__name__)


def _store_path() -> Optional[Path]:
    if not settings.STORE_PERSIST:
        return None
    return Path(settings.DATA_DIR) / settings.STORE_FILENAME


STORE = RealtimeStore(_store_path())

_SESSIONS: Dict[str, GameSession] = {}
_ENGINES: Dict[str, RoundEngine] = {}
_LOCK = RLock()


def create_session(code: Optional[str] = None, options: Optional[Dict[str, Any]] = None) -> GameSession:
    """Crée une session (code fourni ou tiré au hasard) et l'enregistre dans le cache."""
    with _LOCK:
        wanted = normalize_code(code)
        if not wanted:
            wanted = generate_code(settings.SESSION_CODE_LENGTH, taken=lambda c: STORE.exists(game_path(c)))
        session = GameSession.create(STORE, wanted, options)
        _SESSIONS[wanted] = session
        _ENGINES.pop(wanted, None)
        return session


def find_session(code: Optional[str]) -> Optional[GameSession]:
    """Session correspondant au code (insensible à la casse), ou None."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    with _LOCK:
        session = _SESSIONS.get(normalized)
        if session is not None and session.exists():
            return session
        if not STORE.exists(game_path(normalized)):
            return None
        session = GameSession(code=normalized, store=STORE)
        _SESSIONS[normalized] = session
        return session


def get_session(code: Optional[str]) -> GameSession:
    session = find_session(code)
    if session is None:
        raise SessionNotFound(normalize_code(code))
    return session


def get_round_engine(code: Optional[str]) -> RoundEngine:
    """Retourne le moteur de manche de la session (créé à la demande)."""
    session = get_session(code)
    with _LOCK:
        engine = _ENGINES.get(session.code)
        if engine is None or engine.closed:
            engine = RoundEngine(session=session)
            _ENGINES[session.code] = engine
        return engine


def list_session_codes() -> List[str]:
    return sorted(STORE.keys(GAMES_ROOT))


def drop_session(code: str) -> None:
    """Retire une session du cache (sans toucher au store) et arrête son moteur."""
    with _LOCK:
        _SESSIONS.pop(code, None)
        engine = _ENGINES.pop(code, None)
    if engine is not None:
        engine.shutdown()


def end_session(code: Optional[str]) -> None:
    """Arrête le moteur (timers annulés) puis supprime `games/{code}`."""
    session = get_session(code)
    drop_session(session.code)
    session.end()


def reset_all() -> int:
    """Termine toutes les sessions et efface les journaux. Renvoie le nombre de sessions terminées."""
    codes = list_session_codes()
    for code in codes:
        end_session(code)
    with _LOCK:
        for code in list(_SESSIONS):
            drop_session(code)
    if SESSIONS_DIR.exists():
        shutil.rmtree(SESSIONS_DIR, ignore_errors=True)
    logger.info("All sessions reset", extra={"sessions": len(codes)})
    return len(codes)
