"""Authentication routes.

Login flows attach a `user` entry to the session; these routes report and
end the logged-in state.

## Endpoints

1. GET /api/auth/status - Whether the session carries a user
2. GET /api/auth/me - The logged-in user (401 otherwise)
3. POST /api/auth/logout - Destroy the session
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from timetide.auth.dependencies import get_session, require_user
from timetide.auth.session import Session

logger = logging.getLogger(__name__)

router = APIRouter()


class AuthStatusResponse(BaseModel):
    """Authentication status response."""

    authenticated: bool
    user: dict[str, Any] | None = None


@router.get("/status", response_model=AuthStatusResponse)
async def get_auth_status(session: Session = Depends(get_session)) -> AuthStatusResponse:
    """Get the current authentication status."""
    user = session.get("user")
    if user:
        return AuthStatusResponse(authenticated=True, user=user)
    return AuthStatusResponse(authenticated=False)


@router.get("/me")
async def get_me(user: dict[str, Any] = Depends(require_user)) -> dict[str, Any]:
    return user


@router.post("/logout")
async def logout(session: Session = Depends(get_session)) -> dict:
    """Log out the current user.

    Deletes the stored session and expires the cookie.
    """
    if session.get("user"):
        logger.info(f"Session {session.id[:8]}... logged out")

    session.destroy()
    return {"status": "logged_out"}
