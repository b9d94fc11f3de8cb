"""Session-scoped section routes.

Onboarding, leaderboard and progress each keep their state under their own
key of the session payload.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from timetide.auth.dependencies import get_session
from timetide.auth.session import Session


def build_section_router(section: str) -> APIRouter:
    """Create a router reading and replacing `session[section]`."""
    router = APIRouter()

    @router.get("")
    async def read_section(session: Session = Depends(get_session)) -> dict[str, Any]:
        return {section: session.get(section, {})}

    @router.put("")
    async def replace_section(
        data: dict[str, Any] = Body(...),
        session: Session = Depends(get_session),
    ) -> dict[str, Any]:
        session[section] = data
        return {section: data}

    return router
