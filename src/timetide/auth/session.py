"""Session identifiers and per-request session state.

Sessions are stored server-side (see `timetide.database.session_store`).
The cookie only carries the session ID, wrapped in a signed JWT:

```json
{
  "sid": "opaque-session-id",
  "iat": 1234567890,
  "exp": 1234654290,
  "type": "session"
}
```

## Security

- Tokens are signed with SESSION_SECRET (HS256)
- Tokens expire together with the stored session (default: 24 hours)
- Cookies are HTTP-only to prevent XSS access
- Cookies are Secure and SameSite=None in production, SameSite=Lax otherwise
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Iterator, MutableMapping
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from timetide.config import Settings
from timetide.database.models import SessionRecord

logger = logging.getLogger(__name__)

# JWT configuration
ALGORITHM = "HS256"
TOKEN_TYPE = "session"


def new_session_id() -> str:
    """Generate a new opaque session ID."""
    return secrets.token_urlsafe(24)


def create_session_token(session_id: str, settings: Settings) -> str:
    """Create a signed cookie value for a session ID.

    Args:
        session_id: The session ID
        settings: Settings providing the signing key and max age

    Returns:
        Signed JWT token string
    """
    now = datetime.now(timezone.utc)
    expires_at = now + timedelta(seconds=settings.session_max_age_seconds)

    payload = {
        "sid": session_id,
        "iat": int(now.timestamp()),
        "exp": int(expires_at.timestamp()),
        "type": TOKEN_TYPE,
    }

    return jwt.encode(payload, settings.session_signing_key, algorithm=ALGORITHM)


def verify_session_token(token: str, settings: Settings) -> str | None:
    """Verify a cookie value and extract the session ID.

    Returns:
        The session ID if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.session_signing_key,
            algorithms=[ALGORITHM],
        )
    except JWTError as e:
        logger.debug(f"Session token verification failed: {e}")
        return None

    if payload.get("type") != TOKEN_TYPE:
        logger.debug("Invalid token type")
        return None

    session_id = payload.get("sid")
    if not isinstance(session_id, str) or not session_id:
        logger.debug("Session token without sid")
        return None

    return session_id


class Session(MutableMapping[str, Any]):
    """Session payload for a single request.

    Behaves like a dict. Any write marks the session as modified; only
    modified, non-empty sessions are persisted. Mutating a nested value in
    place does not mark the session, call `mark_modified()` in that case.
    """

    def __init__(
        self,
        session_id: str,
        data: dict[str, Any] | None = None,
        *,
        is_new: bool = False,
        stored: bool = False,
        created_at: datetime | None = None,
    ):
        self.id = session_id
        self._data: dict[str, Any] = dict(data or {})
        self.is_new = is_new
        self.stored = stored
        self.created_at = created_at
        self.modified = False
        self.destroyed = False

    @classmethod
    def new(cls) -> Session:
        """Create a session for a client without a valid cookie."""
        return cls(new_session_id(), is_new=True)

    @classmethod
    def from_record(cls, record: SessionRecord) -> Session:
        return cls(
            record.id,
            record.data,
            stored=True,
            created_at=record.created_at,
        )

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.modified = True

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self.modified = True

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, keys={list(self._data)!r}, modified={self.modified})"

    def mark_modified(self) -> None:
        self.modified = True

    def destroy(self) -> None:
        """Drop the session: the record is deleted and the cookie expired."""
        self._data.clear()
        self.destroyed = True

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def to_record(self, max_age: timedelta) -> SessionRecord:
        """Build the record to persist, sliding the expiry from now."""
        return SessionRecord.create(
            self.id,
            self._data,
            max_age=max_age,
            created_at=self.created_at,
        )
