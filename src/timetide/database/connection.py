"""MongoDB connection management.

Provides a single long-lived async MongoDB client per process.

## Configuration

The connection is configured via environment variables (see `timetide.config`):
- MONGO_URI: Full MongoDB connection string
- MONGO_SERVER_SELECTION_TIMEOUT_MS: Server selection timeout (default: 15000)
- MONGO_SOCKET_TIMEOUT_MS: Socket timeout (default: 45000)
- MONGO_CONNECT_ATTEMPTS: Initial connection attempts (default: 5)

## Lifecycle

The client is created lazily. `start()` verifies the connection in a
background task so the server accepts requests while the database is still
unreachable; requests that touch the database fail on their own until it
comes up. Listeners are notified with `connected` or `error` events.

## Usage

```python
connector = MongoConnector(settings)
connector.start()

sessions = connector.collection("sessions")
await sessions.find_one({"_id": session_id})

await connector.close()
```
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable

from pymongo import AsyncMongoClient
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from timetide.config import Settings

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Connection state as reported by the health endpoints."""

    UNCONFIGURED = "unconfigured"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DEGRADED = "degraded"
    CLOSED = "closed"


class ConnectionEvent(str, Enum):
    """Lifecycle events emitted by the connector."""

    CONNECTED = "connected"
    ERROR = "error"


ConnectionListener = Callable[[ConnectionEvent, Exception | None], Awaitable[None] | None]


class MongoConnector:
    """Owns the MongoDB client and reports its connection state.

    Args:
        settings: Application settings
        client_factory: Callable building the client (tests inject a fake)
        wait: tenacity wait strategy between connection attempts
    """

    def __init__(
        self,
        settings: Settings,
        client_factory: Callable[..., Any] = AsyncMongoClient,
        wait: wait_base | None = None,
    ):
        self.settings = settings
        self._client_factory = client_factory
        self._wait = wait or wait_exponential(multiplier=1, min=1, max=30)
        self._client: Any = None
        self._task: asyncio.Task[None] | None = None
        self._listeners: list[ConnectionListener] = []

        if settings.mongo_uri:
            self.state = ConnectionState.DISCONNECTED
        else:
            self.state = ConnectionState.UNCONFIGURED

    @property
    def is_configured(self) -> bool:
        return self.state is not ConnectionState.UNCONFIGURED

    @property
    def client(self) -> AsyncMongoClient:
        """Get or create the MongoDB client.

        Raises:
            RuntimeError: If MONGO_URI is not configured
            PyMongoError: If the client cannot be created (e.g. invalid URI)
        """
        if not self.is_configured:
            raise RuntimeError("MongoDB is not configured. Set MONGO_URI.")
        if self.state is ConnectionState.CLOSED:
            raise RuntimeError("MongoDB connection has been closed.")

        if self._client is None:
            self._client = self._client_factory(
                self.settings.mongo_uri,
                tz_aware=True,
                **self.settings.mongo_client_options(),
            )
        return self._client

    @property
    def database(self) -> AsyncDatabase:
        """Database named in the URI, or MONGO_DATABASE."""
        return self.client.get_default_database(default=self.settings.mongo_database)

    def collection(self, name: str) -> AsyncCollection:
        return self.database[name]

    def add_listener(self, listener: ConnectionListener) -> None:
        """Register a callback for lifecycle events.

        Callbacks receive the event and the exception (for `error`) and may
        be coroutine functions.
        """
        self._listeners.append(listener)

    async def _emit(self, event: ConnectionEvent, error: Exception | None = None) -> None:
        if event is ConnectionEvent.CONNECTED:
            logger.info("Connected to MongoDB")
        else:
            logger.error(f"MongoDB connection error: {error}")

        for listener in self._listeners:
            try:
                result = listener(event, error)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"MongoDB {event.value} listener failed")

    def start(self) -> None:
        """Begin connecting in the background.

        Must be called from a running event loop. A missing MONGO_URI is
        logged and leaves the connector unconfigured.
        """
        if not self.is_configured:
            logger.error("Missing MONGO_URI in environment. Sessions will not be persisted.")
            return
        if self._task is not None:
            return

        self.state = ConnectionState.CONNECTING
        self._task = asyncio.create_task(self.connect(), name="mongo-connect")

    async def connect(self) -> ConnectionState:
        """Ping the server with bounded retry and exponential backoff.

        Returns:
            The resulting state: CONNECTED, or DEGRADED once attempts run out
        """
        self.state = ConnectionState.CONNECTING
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.settings.mongo_connect_attempts),
            wait=self._wait,
            retry=retry_if_exception_type(PyMongoError),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    try:
                        await self.database.command("ping")
                    except PyMongoError as e:
                        await self._emit(ConnectionEvent.ERROR, e)
                        raise
        except PyMongoError:
            attempts = self.settings.mongo_connect_attempts
            logger.error(f"Giving up on MongoDB after {attempts} attempts; running degraded")
            self.state = ConnectionState.DEGRADED
            return self.state

        self.state = ConnectionState.CONNECTED
        await self._emit(ConnectionEvent.CONNECTED)
        return self.state

    async def close(self) -> None:
        """Stop connecting and close the client.

        Should be called on application shutdown.
        """
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("MongoDB connect task failed")
            finally:
                self._task = None

        try:
            if self._client is not None:
                logger.info("Closing MongoDB connection")
                await self._client.close()
        finally:
            self._client = None
            if self.is_configured:
                self.state = ConnectionState.CLOSED
