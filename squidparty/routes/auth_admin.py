"""
Routes d'authentification admin
===============================

- POST /auth/admin/login  : vérifie les identifiants admin et POSE un cookie 'admin_session'
- POST /auth/admin/logout : supprime la session côté serveur + EFFACE le cookie client

Le cookie est HttpOnly, `SameSite=lax`, et `Secure` hors DEBUG. Les routes admin acceptent
ensuite ce cookie ou un Bearer `ADMIN_TOKEN` (voir `deps/auth.py`).

Configuration attendue
----------------------
- `settings.ADMIN_USER` / `settings.ADMIN_PASSWORD` (défaut admin / password, à changer via .env)
- `settings.DEBUG` : True en dev → cookie non `Secure`.
"""

from fastapi import APIRouter, HTTPException, Request, Response
from pydantic import BaseModel

from squidparty.config.settings import settings
from squidparty.deps.auth import (
    ADMIN_COOKIE_NAME,
    ADMIN_TTL_SECONDS,
    create_admin_session,
    delete_admin_session,
)

router = APIRouter(prefix="/auth/admin", tags=["auth"])


class AdminLogin(BaseModel):
    username: str
    password: str


@router.post("/login")
def admin_login(p: AdminLogin, response: Response):
    """
    Authentifie l'admin et pose le cookie HttpOnly 'admin_session'.

    Réponse: { "ok": true, "ttl": <seconds> } ; 401 si identifiants invalides.
    """
    if p.username != settings.ADMIN_USER or p.password != settings.ADMIN_PASSWORD:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    sid = create_admin_session()
    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=sid,
        httponly=True,
        samesite="lax",
        secure=not settings.DEBUG,
        max_age=ADMIN_TTL_SECONDS,
        path="/",
    )
    return {"ok": True, "ttl": ADMIN_TTL_SECONDS}


@router.post("/logout")
def admin_logout(request: Request, response: Response):
    """Déconnecte l'admin: session serveur supprimée, cookie effacé."""
    delete_admin_session(request.cookies.get(ADMIN_COOKIE_NAME))
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/")
    return {"ok": True}
