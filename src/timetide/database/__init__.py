"""Database module for the TimeTide API.

This module provides:
- The async MongoDB connector shared by the whole process
- Session documents and the session store
"""

from timetide.database.connection import (
    ConnectionEvent,
    ConnectionState,
    MongoConnector,
)
from timetide.database.models import SessionRecord
from timetide.database.session_store import SessionStore

__all__ = [
    # Connection
    "ConnectionEvent",
    "ConnectionState",
    "MongoConnector",
    # Sessions
    "SessionRecord",
    "SessionStore",
]
