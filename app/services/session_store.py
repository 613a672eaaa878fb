"""Server-side session storage.

The browser only ever holds an opaque, random session id in a cookie.
Everything the server knows about the session (today: the identity
projection written at login) lives in a backend keyed by that id, so a
session can be killed server-side at any moment by deleting the key.

Two backends satisfy the SessionBackend Protocol:
  InMemorySessionBackend: per-process dict, for tests and local dev.
  RedisSessionBackend: shared across API instances, expiry via key TTL.

Session is the per-request handle on top of a backend.  It is created by
SessionMiddleware from the request cookie and handed explicitly to the
code that needs it.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from typing import Any, Protocol, runtime_checkable

from app.models.errors import SessionStoreError

logger = logging.getLogger(__name__)

SessionData = dict[str, Any]


@runtime_checkable
class SessionBackend(Protocol):
    async def load(self, session_id: str) -> SessionData | None:
        """Return the stored data, or None if the session is unknown or expired."""
        ...

    async def save(self, session_id: str, data: SessionData, ttl_seconds: int) -> None:
        """Store *data* under *session_id*, expiring *ttl_seconds* after this write."""
        ...

    async def delete(self, session_id: str) -> None:
        """Remove the session.  Deleting an unknown id is not an error."""
        ...


class InMemorySessionBackend:
    """Per-process backend.  A logout on one worker is invisible to another."""

    def __init__(self) -> None:
        # session_id -> (expires_at, data)
        self._store: dict[str, tuple[float, SessionData]] = {}

    async def load(self, session_id: str) -> SessionData | None:
        entry = self._store.get(session_id)
        if entry is None:
            return None
        expires_at, data = entry
        # Mimic Redis TTL behavior
        if expires_at < time.time():
            del self._store[session_id]
            return None
        return dict(data)

    async def save(self, session_id: str, data: SessionData, ttl_seconds: int) -> None:
        self._store[session_id] = (time.time() + ttl_seconds, dict(data))

    async def delete(self, session_id: str) -> None:
        self._store.pop(session_id, None)


class RedisSessionBackend:
    """Redis-backed sessions, stored as JSON under a prefixed key."""

    _PREFIX = "session:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def load(self, session_id: str) -> SessionData | None:
        raw = await self._redis.get(f"{self._PREFIX}{session_id}")
        if raw is None:
            return None
        return json.loads(raw)

    async def save(self, session_id: str, data: SessionData, ttl_seconds: int) -> None:
        # SETEX writes value and TTL atomically
        await self._redis.setex(
            f"{self._PREFIX}{session_id}", ttl_seconds, json.dumps(data)
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(f"{self._PREFIX}{session_id}")


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class Session:
    """Handle on one request's session.

    Reads are lazy: the backend is only hit the first time a value is
    requested.  Writes go straight to the backend so a failed write
    surfaces inside the request that caused it.  Every backend failure is
    raised as SessionStoreError.
    """

    def __init__(
        self,
        backend: SessionBackend,
        session_id: str | None,
        *,
        ttl_seconds: int,
    ) -> None:
        self._backend = backend
        self._id = session_id
        self._ttl_seconds = ttl_seconds
        self._data: SessionData | None = None
        self.modified = False
        self.flushed = False

    @property
    def id(self) -> str | None:
        return self._id

    async def _load(self) -> SessionData:
        if self._data is None:
            if self._id is None:
                self._data = {}
            else:
                try:
                    loaded = await self._backend.load(self._id)
                except Exception as e:
                    raise SessionStoreError("session load failed") from e
                if loaded is None:
                    # Unknown or expired id: never adopt an id the client made up
                    self._id = None
                    loaded = {}
                self._data = loaded
        return self._data

    async def get(self, key: str) -> Any | None:
        data = await self._load()
        return data.get(key)

    async def set(self, key: str, value: Any) -> None:
        data = await self._load()
        data[key] = value
        if self._id is None:
            self._id = new_session_id()
        try:
            await self._backend.save(self._id, data, self._ttl_seconds)
        except Exception as e:
            raise SessionStoreError("session save failed") from e
        self.modified = True
        self.flushed = False

    async def cycle_id(self) -> None:
        """Move the session to a fresh id and delete the old one.

        Called when the privilege level changes (login, register), so an id
        that existed before authentication never carries the identity.  The
        data is stored under the new id by the next set().
        """
        await self._load()
        old_id = self._id
        self._id = new_session_id()
        if old_id is not None:
            try:
                await self._backend.delete(old_id)
            except Exception as e:
                raise SessionStoreError("session delete failed") from e

    async def flush(self) -> None:
        """Delete all session state; the old id can never be used again."""
        if self._id is not None:
            try:
                await self._backend.delete(self._id)
            except Exception as e:
                raise SessionStoreError("session delete failed") from e
        self._id = None
        self._data = {}
        self.modified = False
        self.flushed = True
