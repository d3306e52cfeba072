"""
Best-effort notification of session changes.

Session mutations always complete first; the `sessions:changed` signal is
sent afterwards and any delivery failure is logged and dropped.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from .models import SessionsChangedEvent
from .realtime import RealtimePublisher
from .storage import SessionStore

logger = logging.getLogger(__name__)

DeleteSession = Callable[[str], Awaitable[None]]
PublishEvent = Callable[[str, Any], Awaitable[None]]

# Default upper bound for one publish attempt, in seconds
DEFAULT_PUBLISH_TIMEOUT = 2.0


def sessions_changed_event() -> SessionsChangedEvent:
    return SessionsChangedEvent()


class SessionNotifier:
    """
    Composes session deletion with a `sessions:changed` broadcast.

    Both collaborators are injected so the notifier can run without a live
    store or transport. Deletion goes through exactly one source: either a
    bare `delete_session` callable, or a `store` that also backs the bulk
    helpers.
    """

    def __init__(
        self,
        delete_session: Optional[DeleteSession] = None,
        publish: Optional[PublishEvent] = None,
        timeout: float = DEFAULT_PUBLISH_TIMEOUT,
        store: Optional[SessionStore] = None,
    ) -> None:
        if publish is None:
            raise ValueError("publish is required")
        if store is not None:
            if delete_session is not None:
                raise ValueError("Pass either delete_session or store, not both")
            delete_session = store.delete_session
        elif delete_session is None:
            raise ValueError("Either delete_session or store is required")

        self._delete_session = delete_session
        self._publish = publish
        self._timeout = timeout
        self._store = store

    @classmethod
    def from_store(
        cls,
        store: SessionStore,
        publisher: Optional[RealtimePublisher] = None,
        timeout: Optional[float] = None,
    ) -> "SessionNotifier":
        """Wire a notifier to a session store and the realtime publisher."""
        publisher = publisher or RealtimePublisher()
        if timeout is None:
            timeout = publisher.config.timeout
        return cls(
            publish=publisher.publish,
            timeout=timeout,
            store=store,
        )

    async def notify_sessions_changed(self, username: str) -> bool:
        """
        Publish a SessionsChangedEvent to the user's channel.

        Never raises.

        Returns:
            True if the publish call completed, False if it failed or timed out
        """
        try:
            await asyncio.wait_for(
                self._publish(username, sessions_changed_event()),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Timed out notifying session change for %s", username)
            return False
        except Exception as e:
            logger.warning("Failed to notify session change for %s: %s", username, e)
            return False
        return True

    async def revoke_session_and_notify(self, username: str, session_id: str) -> None:
        """
        Delete one session, then notify. Deletion errors propagate;
        notification errors do not.
        """
        await self._delete_session(session_id)
        await self.notify_sessions_changed(username)

    async def revoke_other_sessions_and_notify(self, username: str, keep_session_id: str) -> int:
        """Delete every other session of the user, then notify."""
        store = self._require_store()
        deleted = await store.delete_other_sessions_for_user(username, keep_session_id)
        await self.notify_sessions_changed(username)
        return deleted

    async def sign_out_everywhere_and_notify(self, username: str) -> int:
        """Delete all of the user's sessions, then notify."""
        store = self._require_store()
        deleted = await store.delete_sessions_for_user(username)
        await self.notify_sessions_changed(username)
        return deleted

    def _require_store(self) -> SessionStore:
        if self._store is None:
            raise RuntimeError("Session store not configured")
        return self._store
