"""
Utils: codes.py
Rôle:
- Générer les codes de session partagés aux joueurs (majuscules + chiffres).
- Normaliser un code saisi (espaces, casse).
"""
import random
import string
from typing import Callable, Optional

CODE_ALPHABET = string.ascii_uppercase + string.digits


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().upper()


def generate_code(
    length: int = 6,
    taken: Optional[Callable[[str], bool]] = None,
    rng: Optional[random.Random] = None,
    max_attempts: int = 100,
) -> str:
    """
    Tire un code de `length` caractères dans [A-Z0-9].
    `taken(code)` permet d'écarter les codes déjà utilisés.
    """
    rng = rng or random.SystemRandom()
    for _ in range(max_attempts):
        code = "".join(rng.choice(CODE_ALPHABET) for _ in range(length))
        if taken is None or not taken(code):
            return code
    raise RuntimeError("could not allocate a unique session code")
