"""
Admin reset routes.

Provide an admin-only endpoint that ends every session (engines stopped, timers
cancelled, `games/*` removed) and wipes the per-session audit journals under
``DATA_DIR/sessions/``. Admin cookie sessions are preserved.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from squidparty.deps.auth import admin_required
from squidparty.services.session_store import reset_all

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(admin_required)],
)


@router.post("/reset")
async def reset_game():
    """Reset runtime data for every session."""
    ended = reset_all()
    return {"ok": True, "sessions_ended": ended}
