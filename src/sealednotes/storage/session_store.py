"""Session store interface and in-memory implementation."""

import asyncio
import secrets
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Optional

from ..models import Session
from ..types import SessionNotFoundError


# Default session lifetime: 7 days
DEFAULT_SESSION_TTL = timedelta(days=7)


class SessionStore(ABC):
    """Interface for the login session store."""

    @abstractmethod
    async def create_session(
        self,
        username: str,
        ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> Session:
        """Create a new session for a user."""
        ...

    @abstractmethod
    async def get_session(self, session_id: str) -> Optional[Session]:
        """Return a live session, or None if missing or expired."""
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        """Delete one session."""
        ...

    @abstractmethod
    async def list_sessions_for_user(self, username: str) -> list[Session]:
        """List a user's live sessions."""
        ...

    @abstractmethod
    async def delete_other_sessions_for_user(self, username: str, keep_session_id: str) -> int:
        """Delete all of a user's sessions except one. Returns the number deleted."""
        ...

    @abstractmethod
    async def delete_sessions_for_user(self, username: str) -> int:
        """Delete all of a user's sessions. Returns the number deleted."""
        ...

    async def require_session(self, session_id: str) -> Session:
        """Return a live session or raise SessionNotFoundError."""
        session = await self.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session


class InMemorySessionStore(SessionStore):
    """
    In-memory implementation of SessionStore (for testing).

    Sessions are lost when the process exits.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def create_session(
        self,
        username: str,
        ttl: timedelta = DEFAULT_SESSION_TTL,
    ) -> Session:
        session = Session(
            id=secrets.token_urlsafe(24),
            username=username,
            expires_at=datetime.now() + ttl,
        )
        async with self._lock:
            self._sessions[session.id] = session
        return session

    async def get_session(self, session_id: str) -> Optional[Session]:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired():
                del self._sessions[session_id]
                return None
            return session

    async def delete_session(self, session_id: str) -> None:
        async with self._lock:
            self._sessions.pop(session_id, None)

    async def list_sessions_for_user(self, username: str) -> list[Session]:
        async with self._lock:
            now = datetime.now()
            return [
                s for s in self._sessions.values()
                if s.username == username and not s.is_expired(now)
            ]

    async def delete_other_sessions_for_user(self, username: str, keep_session_id: str) -> int:
        async with self._lock:
            doomed = [
                sid for sid, s in self._sessions.items()
                if s.username == username and sid != keep_session_id
            ]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)

    async def delete_sessions_for_user(self, username: str) -> int:
        async with self._lock:
            doomed = [sid for sid, s in self._sessions.items() if s.username == username]
            for sid in doomed:
                del self._sessions[sid]
            return len(doomed)
