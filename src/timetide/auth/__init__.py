"""Session-based authentication for the TimeTide API.

Provides signed session cookies backed by server-side session records.

## Session Flow

1. A client without a valid cookie gets a new session ID
2. Route handlers read and write `request.session`
3. Modified, non-empty sessions are saved to MongoDB and the cookie refreshed
4. Logout destroys the stored session and expires the cookie

## Security

- Cookie values are signed JWTs carrying only the session ID
- HTTPS-only, cross-site cookies in production
"""

from timetide.auth.dependencies import get_session, require_user
from timetide.auth.middleware import SessionMiddleware
from timetide.auth.session import (
    Session,
    create_session_token,
    new_session_id,
    verify_session_token,
)

__all__ = [
    "Session",
    "SessionMiddleware",
    "create_session_token",
    "get_session",
    "new_session_id",
    "require_user",
    "verify_session_token",
]
