"""Session registry for the HTTP transport: explicit create/lookup/evict with idle expiry."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable

from pydantic import BaseModel


class Session(BaseModel):
    session_id: str
    server: str
    created_at: float
    last_seen: float


class SessionRegistry:
    """Process-wide store of live transport sessions.

    A session is created when `initialize` succeeds, refreshed on each request and
    evicted on DELETE or after `idle_timeout_sec` without traffic. Not thread-safe;
    the API runs it on one event loop.
    """

    def __init__(self, idle_timeout_sec: float = 1800, clock: Callable[[], float] = time.monotonic):
        self.idle_timeout_sec = idle_timeout_sec
        self._clock = clock
        self._sessions: dict[str, Session] = {}

    def create(self, server: str, session_id: str | None = None) -> Session:
        """Register a session. The id defaults to a fresh uuid hex; the HTTP transport passes its own."""
        now = self._clock()
        session = Session(session_id=session_id or uuid.uuid4().hex, server=server, created_at=now, last_seen=now)
        self._sessions[session.session_id] = session
        return session

    def lookup(self, session_id: str | None, server: str | None = None) -> Session | None:
        """Session by id, or None if unknown, expired or bound to another server."""
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is None:
            return None
        if self._expired(session):
            self.evict(session_id)
            return None
        if server is not None and session.server != server:
            return None
        return session

    def touch(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_seen = self._clock()

    def evict(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def evict_idle(self) -> list[Session]:
        """Drop every expired session and return them so the caller can close their transports."""
        stale = [s for s in self._sessions.values() if self._expired(s)]
        for session in stale:
            del self._sessions[session.session_id]
        return stale

    def _expired(self, session: Session) -> bool:
        return self._clock() - session.last_seen > self.idle_timeout_sec

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions
