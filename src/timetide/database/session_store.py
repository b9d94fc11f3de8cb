"""MongoDB-backed session store.

The store shares the application's `MongoConnector` rather than opening its
own connection, so both always use the same connection parameters.
"""

from __future__ import annotations

import logging

from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import PyMongoError

from timetide.database.connection import ConnectionEvent, MongoConnector
from timetide.database.models import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore:
    """Persists `SessionRecord`s in a MongoDB collection."""

    def __init__(self, connector: MongoConnector, collection_name: str = "sessions"):
        self.connector = connector
        self.collection_name = collection_name
        self._indexes_ready = False
        connector.add_listener(self._on_connection_event)

    @property
    def collection(self) -> AsyncCollection:
        return self.connector.collection(self.collection_name)

    async def _on_connection_event(
        self, event: ConnectionEvent, error: Exception | None
    ) -> None:
        if event is ConnectionEvent.CONNECTED:
            await self.ensure_indexes()

    async def ensure_indexes(self) -> None:
        """Create the TTL index that removes expired sessions.

        Runs on every `connected` event, and again before the first save if
        no earlier attempt succeeded.
        """
        await self.collection.create_index("expires", expireAfterSeconds=0)
        self._indexes_ready = True
        logger.debug(f"Ensured TTL index on {self.collection_name}.expires")

    async def load(self, session_id: str) -> SessionRecord | None:
        """Fetch a session.

        Returns None if the session does not exist, is malformed, or has
        expired but not yet been removed by the TTL monitor.
        """
        doc = await self.collection.find_one({"_id": session_id})
        if doc is None:
            return None

        try:
            record = SessionRecord.from_document(doc)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed session document {session_id}: {e}")
            return None

        if record.is_expired:
            return None
        return record

    async def save(self, record: SessionRecord) -> None:
        """Insert or replace a session."""
        if not self._indexes_ready:
            try:
                await self.ensure_indexes()
            except PyMongoError as e:
                logger.warning(f"Could not create TTL index on {self.collection_name}: {e}")

        await self.collection.replace_one(
            {"_id": record.id},
            record.to_document(),
            upsert=True,
        )

    async def destroy(self, session_id: str) -> None:
        await self.collection.delete_one({"_id": session_id})
