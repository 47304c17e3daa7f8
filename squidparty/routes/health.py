"""
Module routes/health.py
Rôle:
- Endpoint de santé (service OK + quelques compteurs runtime).
"""
from fastapi import APIRouter

from squidparty.config.settings import settings
from squidparty.services.session_store import list_session_codes

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
async def health():
    """Renvoie un OK minimal avec le nom de service et le nombre de sessions."""
    return {
        "ok": True,
        "service": settings.APP_NAME,
        "sessions": len(list_session_codes()),
        "timers": settings.ROUND_TIMERS_ENABLED,
    }
