"""API route modules.

Route collaborators are mounted under fixed prefixes; `create_app` accepts
replacements for any of them.
"""

from __future__ import annotations

from fastapi import APIRouter

ROUTE_PREFIXES = (
    "/api/auth",
    "/api/sessions",
    "/api/onboarding",
    "/api/leaderboard",
    "/api/progress",
)


def default_collaborators() -> dict[str, APIRouter]:
    """Routers mounted when `create_app` is given no replacements."""
    from timetide.api.routes import auth, sessions
    from timetide.api.routes.sections import build_section_router

    return {
        "/api/auth": auth.router,
        "/api/sessions": sessions.router,
        "/api/onboarding": build_section_router("onboarding"),
        "/api/leaderboard": build_section_router("leaderboard"),
        "/api/progress": build_section_router("progress"),
    }
