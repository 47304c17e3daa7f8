"""
Models / player.py
Rôle:
- Définir l'enregistrement joueur stocké sous `games/{code}/players/{id}`.

Champs (camelCase, tels que lus par les clients):
- id: identifiant unique du joueur (fourni par le client ou généré).
- name: nom d'affichage (les doublons sont acceptés).
- number: numéro de dossard (taille du roster + 1 au moment du join).
- isEliminated: passe de False à True, jamais l'inverse.
- coins: cagnotte cumulée des manches survécues.
- clearedRound: dernière manche survécue (0 = aucune).
"""
from pydantic import BaseModel, Field


class Player(BaseModel):
    """Joueur tel que persisté dans le store."""
    id: str
    name: str
    number: int = Field(ge=1)
    isEliminated: bool = False
    coins: int = 0
    clearedRound: int = 0
