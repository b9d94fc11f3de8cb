"""FastAPI application and routes.

This module provides the REST API for the TimeTide backend.

## API Structure

- /api/auth - Authentication state and logout
- /api/sessions - Session payload
- /api/onboarding - Onboarding state
- /api/leaderboard - Leaderboard state
- /api/progress - Progress state
- /api/weather - OpenWeatherMap proxy
- /api/health - Liveness and readiness checks

## Sessions

Every request gets a session identified by a signed cookie. Sessions are
stored in MongoDB once a route writes to them.

## Security

- Secure, cross-site cookies and a CORS allowlist in production
- Error details are hidden from clients in production
"""

from timetide.api.app import create_app

__all__ = ["create_app"]
