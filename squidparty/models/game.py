"""
Models / game.py
Rôle:
- Modèles Pydantic de la session (`games/{code}`) et des réponses de routage de vue.

Notes:
- `SessionSnapshot` valide le nœud racine; les sous-états de manche (`redLight`, `tugOfWar`,
  `glassBridge`, `play`) sont des dicts libres produits par le moteur de manche.
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, Literal, Optional

from .player import Player

Mode = Literal["team", "solo"]
SessionStatus = Literal["lobby", "playing"]


class SessionOptions(BaseModel):
    """Variantes choisies à la création (défauts: settings)."""
    tugOfWarMode: Mode = "team"
    glassBridgeMode: Mode = "team"


class SessionSnapshot(BaseModel):
    code: str
    status: SessionStatus = "lobby"
    currentRound: int = Field(default=0, ge=0)
    createdAt: float = 0.0
    options: SessionOptions = Field(default_factory=SessionOptions)
    players: Dict[str, Player] = Field(default_factory=dict)
    redLight: Optional[Dict[str, Any]] = None
    tugOfWar: Optional[Dict[str, Any]] = None
    glassBridge: Optional[Dict[str, Any]] = None
    play: Optional[Dict[str, Dict[str, Any]]] = None


ViewName = Literal[
    "lobby",
    "not-joined",
    "game-over",
    "red-light-green-light",
    "honeycomb",
    "tug-of-war",
    "marbles",
    "glass-bridge",
    "squid-game",
]


class ViewState(BaseModel):
    """Écran à afficher pour un joueur (+ message éventuel)."""
    view: ViewName
    message: Optional[str] = None
