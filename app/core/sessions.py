"""
Server-side sessions.

The cookie carries only a signed session id; the session data itself
lives in an in-process `SessionStore`. Handlers see the data as
`request.session` (a plain dict), the same attribute Starlette's cookie
sessions expose, so OAuth client libraries can keep their state there.

Rules:
  - a request that leaves the session empty never gets a cookie
  - a session emptied during a request is dropped from the store
  - the id is signed with SESSION_SECRET (itsdangerous) and expires
    after SESSION_MAX_AGE seconds, both in the cookie and in the store
"""

import logging
import secrets
import threading
import time
from typing import Any

from itsdangerous import BadSignature, TimestampSigner
from starlette.datastructures import MutableHeaders
from starlette.requests import HTTPConnection
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

SESSION_ID_SCOPE_KEY = "session_id"


class SessionError(Exception):
    """Raised when the session backend cannot complete an operation."""


class SessionStore:
    """In-process session storage with per-entry expiry."""

    def __init__(self, max_age: int):
        self.max_age = max_age
        self._data: dict[str, tuple[float, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def new_id(self) -> str:
        return secrets.token_urlsafe(32)

    def load(self, session_id: str) -> dict[str, Any] | None:
        """Return a copy of the session data, or None if unknown/expired."""
        with self._lock:
            entry = self._data.get(session_id)
            if entry is None:
                return None
            expires_at, data = entry
            if expires_at < time.time():
                del self._data[session_id]
                return None
            return dict(data)

    def save(self, session_id: str, data: dict[str, Any]) -> None:
        """Store data under `session_id`; expired entries are swept on the way."""
        with self._lock:
            now = time.time()
            for stale in [sid for sid, (expires_at, _) in self._data.items() if expires_at < now]:
                del self._data[stale]
            self._data[session_id] = (now + self.max_age, dict(data))

    def destroy(self, session_id: str) -> None:
        """
        Remove a session. Unknown ids are ignored.

        This in-process store cannot fail here. `SessionError` is the
        error a store backed by an external service raises from this
        method, and logout answers it with a 500.
        """
        with self._lock:
            self._data.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._data)


class ServerSessionMiddleware:
    def __init__(
        self,
        app: ASGIApp,
        store: SessionStore,
        secret_key: str,
        session_cookie: str = "connect.sid",
        max_age: int = 24 * 60 * 60,
        path: str = "/",
        same_site: str = "lax",
        https_only: bool = False,
    ) -> None:
        self.app = app
        self.store = store
        self.signer = TimestampSigner(str(secret_key))
        self.session_cookie = session_cookie
        self.max_age = max_age
        self.path = path
        self.security_flags = "httponly; samesite=" + same_site
        if https_only:
            self.security_flags += "; secure"

    def _session_id_from_cookie(self, connection: HTTPConnection) -> str | None:
        raw = connection.cookies.get(self.session_cookie)
        if not raw:
            return None
        try:
            return self.signer.unsign(raw.encode("utf-8"), max_age=self.max_age).decode("utf-8")
        except BadSignature:
            return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        connection = HTTPConnection(scope)
        session_id = self._session_id_from_cookie(connection)
        data = self.store.load(session_id) if session_id else None
        if data is None:
            session_id = None
            data = {}

        scope["session"] = data
        scope[SESSION_ID_SCOPE_KEY] = session_id

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                self._commit(scope, message)
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _commit(self, scope: Scope, message: Message) -> None:
        # Handlers may have replaced the id (logout sets it to None)
        session_id = scope.get(SESSION_ID_SCOPE_KEY)
        session = scope["session"]

        if session:
            if session_id is None:
                session_id = self.store.new_id()
                scope[SESSION_ID_SCOPE_KEY] = session_id
            self.store.save(session_id, session)
            signed = self.signer.sign(session_id.encode("utf-8")).decode("utf-8")
            headers = MutableHeaders(scope=message)
            headers.append(
                "Set-Cookie",
                f"{self.session_cookie}={signed}; path={self.path}; "
                f"Max-Age={self.max_age}; {self.security_flags}",
            )
        elif session_id is not None:
            self.store.destroy(session_id)
            headers = MutableHeaders(scope=message)
            headers.append(
                "Set-Cookie",
                f"{self.session_cookie}=null; path={self.path}; "
                f"expires=Thu, 01 Jan 1970 00:00:00 GMT; {self.security_flags}",
            )
