"""
Configuration de l'application (Settings)
=========================================

Rôle
----
- Centraliser les paramètres du service (nom, host/port, jetons admin, chemins, timers de manche).
- Les valeurs par défaut conviennent pour un environnement de dev local.
- Les variables peuvent être surchargées via un fichier `.env` ou l'environnement.

Intégrations
------------
- `pydantic-settings` charge automatiquement les variables d'env et `.env`.
- Les services/routers importent `from squidparty.config.settings import settings`.

Bonnes pratiques
----------------
- *Ne commitez pas* une valeur réelle de `ADMIN_TOKEN` / `ADMIN_PASSWORD`. Utilisez `.env`.
- `DATA_DIR` calcule un chemin relatif au package : `<repo>/squidparty/data`.
- `ROUND_TIMERS_ENABLED=false` fige les comptes à rebours (tests, debug) : l'horloge
  avance alors uniquement via `POST /admin/games/{code}/round/tick`.

Exemples de `.env`
------------------
APP_NAME="Squid Party Backend (Staging)"
PORT=8080
ADMIN_TOKEN="mettre-une-valeur-secrète-en-prod"
ADMIN_PASSWORD="autre-secret"
DATA_DIR="/var/opt/squidparty/data"
TUG_OF_WAR_MODE="solo"
BRIDGE_TURN_TIMEOUT_SECONDS=0
"""
from typing import List, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict
import os


class Settings(BaseSettings):
    # Nom du service (apparaît dans /health)
    APP_NAME: str = "Squid Party Backend"
    # Bind réseau (FastAPI / Uvicorn)
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Frontends autorisés (CORS)
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Jeton admin utilisé par la dépendance `admin_required` (Bearer)
    # ⚠️ Remplacez en production via .env
    ADMIN_TOKEN: str = "changeme-admin-token"
    # Identifiants de l'écran de login admin (cookie de session)
    ADMIN_USER: str = "admin"
    ADMIN_PASSWORD: str = "password"

    # Répertoire des fichiers persistés (snapshot du store, journaux de session)
    # Par défaut: <repo>/squidparty/data
    DATA_DIR: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "data")
    STORE_PERSIST: bool = True
    STORE_FILENAME: str = "realtime_store.json"

    # Sessions
    SESSION_CODE_LENGTH: int = 6

    # Manches
    ROUND_TIMERS_ENABLED: bool = True
    AUTO_ADVANCE_TEAM_ROUNDS: bool = False
    TUG_OF_WAR_MODE: Literal["team", "solo"] = "team"
    GLASS_BRIDGE_MODE: Literal["team", "solo"] = "team"
    # 0 = pas de forfait automatique (un joueur déconnecté bloque le pont)
    BRIDGE_TURN_TIMEOUT_SECONDS: float = 45.0

    # Paramétrage pydantic-settings :
    # - lit le fichier .env (UTF-8) si présent
    # - ignore les clés supplémentaires pour éviter les erreurs
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


# Instance unique importable partout : `settings`
settings = Settings()
