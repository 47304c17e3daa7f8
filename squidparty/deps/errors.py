"""
Traduction des erreurs métier en réponses HTTP.

Usage dans une route:

    with translate_errors():
        engine.tug_pull(player_id)

`detail` reste court et lisible par une machine (ex: "session_not_found", "already_started").
"""
from contextlib import contextmanager

from fastapi import HTTPException

from squidparty.games.base import GameActionError
from squidparty.services.round_engine import RoundNotActive
from squidparty.services.session_state import (
    InvalidPlayer,
    PlayerEliminated,
    PlayerNotFound,
    SessionAlreadyExists,
    SessionCompleted,
    SessionNotFound,
)


@contextmanager
def translate_errors():
    try:
        yield
    except InvalidPlayer as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except SessionNotFound:
        raise HTTPException(status_code=404, detail="session_not_found")
    except PlayerNotFound:
        raise HTTPException(status_code=404, detail="player_not_found")
    except PlayerEliminated:
        raise HTTPException(status_code=403, detail="player_eliminated")
    except SessionCompleted:
        raise HTTPException(status_code=409, detail="session_completed")
    except SessionAlreadyExists:
        raise HTTPException(status_code=409, detail="session_exists")
    except (RoundNotActive, GameActionError) as exc:
        raise HTTPException(status_code=409, detail=str(exc) or "round_not_active")
