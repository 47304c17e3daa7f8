"""
Dépendances d'authentification admin
====================================

Objectif
--------
Fournir une *dependency* FastAPI `admin_required` qui autorise l'accès admin via:
1) un **Bearer token** (pratique en dev/CLI), *ou*
2) un **cookie de session HttpOnly** posé par `/auth/admin/login` (écran admin du front).

Intégrations
------------
- `settings.ADMIN_TOKEN` : token Bearer.
- `STORE` : sessions admin persistées sous `admin_sessions/{sid}` = {"exp": <ts>}.
- Cookie : `admin_session` (HttpOnly, SameSite=Lax, Secure hors DEBUG).

Pourquoi ne pas protéger le router entier ?
-------------------------------------------
Le préflight CORS (**OPTIONS**) arrive sans header `Authorization`: les routes protégées
déclarent `Depends(admin_required)` elles-mêmes (ou via `dependencies=` du router, qui ne
s'applique pas aux OPTIONS gérés par le middleware CORS).

Comportement & codes retour
---------------------------
- 401 si aucune authentification (ni cookie valide, ni Bearer).
- 403 si Bearer fourni mais invalide.
- True sinon.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import uuid4

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from squidparty.config.settings import settings
from squidparty.services.session_store import STORE

# ----------------------------
# Constantes & utilitaires
# ----------------------------
ADMIN_COOKIE_NAME = "admin_session"
ADMIN_SESSIONS_ROOT = "admin_sessions"
ADMIN_TTL_SECONDS = 12 * 3600  # 12 heures


def _now_ts() -> int:
    return int(datetime.utcnow().timestamp())


def _session_path(sid: str) -> str:
    return f"{ADMIN_SESSIONS_ROOT}/{sid}"


def create_admin_session() -> str:
    """Crée une session admin avec TTL dans le store et renvoie son identifiant."""
    sid = uuid4().hex
    STORE.set(_session_path(sid), {"exp": _now_ts() + ADMIN_TTL_SECONDS})
    return sid


def delete_admin_session(sid: Optional[str]) -> None:
    if not sid:
        return
    STORE.remove(_session_path(sid))


def _cookie_valid(request: Request) -> bool:
    """
    Valide la session admin par cookie. True si (sid présent ET non expiré).
    Une session expirée est supprimée au passage.
    """
    sid = request.cookies.get(ADMIN_COOKIE_NAME)
    if not sid or "/" in sid:
        return False
    rec = STORE.get(_session_path(sid))
    if not isinstance(rec, dict):
        return False
    if int(rec.get("exp", 0)) < _now_ts():
        delete_admin_session(sid)
        return False
    return True


# Schéma Bearer (désactive l'erreur auto pour qu'on rende nos 401/403)
bearer = HTTPBearer(auto_error=False)


def admin_required(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
):
    """
    Dépendance d'accès admin.

    Autorise si:
    - Cookie de session admin valide (HttpOnly), OU
    - Authorization: Bearer <settings.ADMIN_TOKEN>
    """
    if _cookie_valid(request):
        return True

    if credentials and (credentials.scheme or "").lower() == "bearer":
        if credentials.credentials == settings.ADMIN_TOKEN:
            return True
        raise HTTPException(status_code=403, detail="Invalid token")

    raise HTTPException(status_code=401, detail="Admin authentication required")
