"""Document models stored in MongoDB.

## Session Documents

Sessions live in the `sessions` collection:

```json
{
  "_id": "opaque-session-id",
  "session": {"user": {...}},
  "created_at": ISODate(...),
  "last_accessed": ISODate(...),
  "expires": ISODate(...)
}
```

A TTL index on `expires` lets MongoDB delete expired sessions.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any


def _as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes returned by the driver."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class SessionRecord:
    """A persisted server-side session."""

    id: str
    data: dict[str, Any]
    created_at: datetime
    last_accessed: datetime
    expires_at: datetime

    @classmethod
    def create(
        cls,
        session_id: str,
        data: dict[str, Any],
        max_age: timedelta,
        created_at: datetime | None = None,
    ) -> SessionRecord:
        """Build a record expiring `max_age` from now."""
        now = datetime.now(timezone.utc)
        return cls(
            id=session_id,
            data=dict(data),
            created_at=created_at or now,
            last_accessed=now,
            expires_at=now + max_age,
        )

    @property
    def is_expired(self) -> bool:
        """Check if the session has expired."""
        return datetime.now(timezone.utc) >= self.expires_at

    def to_document(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "session": self.data,
            "created_at": self.created_at,
            "last_accessed": self.last_accessed,
            "expires": self.expires_at,
        }

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> SessionRecord:
        """Build a record from a stored document.

        Raises:
            KeyError: If a required field is missing
        """
        expires_at = _as_utc(doc["expires"])
        created_at = _as_utc(doc.get("created_at") or expires_at)
        last_accessed = _as_utc(doc.get("last_accessed") or created_at)
        return cls(
            id=str(doc["_id"]),
            data=dict(doc.get("session") or {}),
            created_at=created_at,
            last_accessed=last_accessed,
            expires_at=expires_at,
        )

