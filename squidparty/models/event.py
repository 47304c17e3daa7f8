"""
Models / event.py
Rôle:
- Définir l'entrée standard du journal d'audit d'une session (events.ndjson).

Notes:
- `kind` reste libre (session_created, player_join, round_advanced, player_eliminated, ...).
- `ts` est un timestamp Unix (float), comme écrit par `GameSession.log_event`.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal

EventScope = Literal["system", "admin", "player", "round"]


class Event(BaseModel):
    """Entrée du journal d'audit."""
    id: str
    kind: str
    scope: EventScope = "system"
    payload: Dict[str, Any] = Field(default_factory=dict)
    ts: float
