"""ASGI middleware attaching a server-side session to every request.

For each request the middleware:

1. Reads the session cookie and verifies its signature
2. Loads the stored session, or starts a new one
3. Exposes it as `request.session`
4. On response start, persists modified sessions and sets the cookie

Sessions are written lazily: anonymous requests that never touch the
session do not create a document. A new session ID is still issued to
clients that arrived without a valid cookie.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from pymongo.errors import PyMongoError
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from timetide.auth.session import Session, create_session_token, verify_session_token
from timetide.config import Settings
from timetide.database.session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionMiddleware:
    """Load and persist sessions around each HTTP request.

    Args:
        app: The wrapped ASGI application
        settings: Application settings (cookie name, max age, signing key)
        store: Session store, or None when MongoDB is not configured, in
            which case sessions only last for a single request
    """

    def __init__(self, app: ASGIApp, settings: Settings, store: SessionStore | None = None):
        self.app = app
        self.settings = settings
        self.store = store
        self.max_age = timedelta(seconds=settings.session_max_age_seconds)

        if settings.is_production:
            self.security_flags = "httponly; samesite=none; secure"
        else:
            self.security_flags = "httponly; samesite=lax"

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session = await self.load_session(connection.cookies.get(self.settings.session_cookie_name))
        scope["session"] = session

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                await self.commit_session(session, headers, scope)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    async def load_session(self, cookie: str | None) -> Session:
        """Resolve the session for a cookie value.

        A valid cookie keeps its session ID even when no record is stored
        yet. Database errors are logged and the request continues with an
        empty payload.
        """
        session_id = verify_session_token(cookie, self.settings) if cookie else None
        if session_id is None:
            return Session.new()

        if self.store is None:
            return Session(session_id)

        try:
            record = await self.store.load(session_id)
        except PyMongoError as e:
            logger.warning(f"Could not load session, continuing without stored data: {e}")
            return Session(session_id)

        if record is None:
            return Session(session_id)
        return Session.from_record(record)

    async def commit_session(self, session: Session, headers: MutableHeaders, scope: Scope) -> None:
        """Persist the session and set or expire the cookie."""
        if session.destroyed:
            if self.store is not None and not session.is_new:
                await self.store.destroy(session.id)
            self._set_cookie(headers, scope, "null", max_age=0)
            return

        saved = False
        if session.modified and self.store is not None:
            if len(session):
                await self.store.save(session.to_record(self.max_age))
                saved = True
            elif session.stored:
                await self.store.destroy(session.id)

        if session.is_new or saved:
            token = create_session_token(session.id, self.settings)
            self._set_cookie(headers, scope, token, max_age=self.settings.session_max_age_seconds)

    def _set_cookie(self, headers: MutableHeaders, scope: Scope, value: str, max_age: int) -> None:
        # Secure cookies are only sent over HTTPS; behind a proxy the scheme
        # comes from X-Forwarded-Proto.
        if self.settings.is_production and scope.get("scheme") not in ("https", "wss"):
            logger.debug("Not setting secure session cookie over an insecure connection")
            return

        header_value = (
            f"{self.settings.session_cookie_name}={value}; path=/; "
            f"Max-Age={max_age}; {self.security_flags}"
        )
        headers.append("Set-Cookie", header_value)
