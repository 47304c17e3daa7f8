"""
Application FastAPI : point d'entrée
====================================

Rôle
----
- Configure le logging (LOG_LEVEL) et le CORS pour le front,
- Monte tous les routeurs (REST + WebSocket),
- Journalise la liste des routes au démarrage.

Notes
-----
- Les importations des routeurs sont explicites pour éviter les surprises d'auto-discovery.
- `debug_ws` est monté seulement si `DEBUG` est True (pratique en dev).
- ⚠️ Le middleware CORS doit être ajouté AVANT les include_router.
- Lancement: `uvicorn squidparty.main:app --host 0.0.0.0 --port 8000`
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from squidparty.config.settings import settings

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Imports directs des routeurs (robuste, évite le lookup de sous-modules)
from squidparty.routes.game import router as game_router
from squidparty.routes.players import router as players_router
from squidparty.routes.minigames import router as minigames_router
from squidparty.routes.websocket import router as ws_router
from squidparty.routes.health import router as health_router
from squidparty.routes.admin import router as admin_router
from squidparty.routes.admin_reset import router as admin_reset_router
from squidparty.routes.auth_admin import router as auth_admin_router
from squidparty.routes.debug_ws import router as debug_ws_router

# --- App FastAPI principale ---
app = FastAPI(title=settings.APP_NAME)

# ===========================
# CORS
# ===========================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,  # ← whitelist des frontends autorisés
    allow_credentials=True,                  # ← nécessaire pour le cookie admin
    allow_methods=["*"],
    allow_headers=["*"],                     # ← dont Authorization
)

# ===========================
# Montage des routers
# ===========================
app.include_router(players_router)
app.include_router(game_router)
app.include_router(minigames_router)
app.include_router(ws_router)                  # WebSocket endpoint (/ws/session/{code})
app.include_router(health_router)
app.include_router(admin_router)
app.include_router(admin_reset_router)
app.include_router(auth_admin_router)

# Router de debug WS (en dev)
if settings.DEBUG:
    app.include_router(debug_ws_router)


# --- Racine utile pour "ping" simple (sans /health) ---
@app.get("/")
async def root():
    """Ping basique : permet de vérifier que l'app tourne."""
    return {"ok": True, "service": "squidparty-backend"}


# --- Hook de démarrage ---
@app.on_event("startup")
async def list_routes():
    """Liste les routes (path + méthodes) dans les logs (diagnostic)."""
    logger.info("Registered routes:")
    for r in app.routes:
        path = getattr(r, "path", None)
        if path is None:
            # certains objets de app.routes (routers inclus) n'exposent pas de path
            continue
        methods = getattr(r, "methods", None) or {"WS"}
        logger.info("  %s %s", path, ",".join(sorted(methods)))
