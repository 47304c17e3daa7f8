"""
Module routes/players.py
Rôle:
- Inscription d'un joueur dans une session via le code partagé par l'admin.

Comportement:
- Code inconnu → 404 `session_not_found` (pas de retry côté serveur).
- `player_id` déjà présent dans le roster → enregistrement existant renvoyé tel quel
  (un joueur éliminé qui revient reste éliminé).
"""
from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from squidparty.deps.errors import translate_errors
from squidparty.services.session_state import PLAYER_ID_PATTERN
from squidparty.services.session_store import get_session

router = APIRouter(prefix="/players", tags=["players"])


class JoinPayload(BaseModel):
    # les longueurs minimales s'appliquent après suppression des espaces
    model_config = ConfigDict(str_strip_whitespace=True)

    code: str = Field(..., min_length=1, description="Code de session (6 caractères)")
    name: str = Field(..., min_length=1, max_length=40)
    player_id: str | None = Field(
        default=None,
        pattern=PLAYER_ID_PATTERN,
        description="Identifiant conservé par le client (re-join), utilisé comme segment de chemin",
    )


@router.post("/join")
async def join(payload: JoinPayload):
    """Inscription d'un joueur → renvoie son enregistrement (id, numéro, état)."""
    with translate_errors():
        session = get_session(payload.code)
        player = session.add_player(payload.name, payload.player_id)
    return {"code": session.code, "player_id": player["id"], "player": player}
