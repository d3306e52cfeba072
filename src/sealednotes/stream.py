"""
Polling change stream for notes.

NotesChangeStream drives the ticker against the event store on a fixed
interval and yields server-sent-events frames for the transport to write.
"""

import asyncio
import logging
import time
from typing import AsyncIterator, Awaitable, Callable, Optional

from .config import StreamConfig
from .ticker import StreamTickState, format_sse, payload_to_sse
from .types import EVENT_HELLO, EVENT_NOTES_CHANGED

logger = logging.getLogger(__name__)

LatestIdProvider = Callable[[], Awaitable[Optional[str]]]


class NotesChangeStream:
    """
    Async iterator of SSE frames for one connection.

    Example usage:
        ```python
        stream = NotesChangeStream(lambda: events.latest_id(username))
        async for frame in stream:
            await response.write(frame.encode())
        ```
    """

    def __init__(
        self,
        latest_id: LatestIdProvider,
        config: Optional[StreamConfig] = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._latest_id = latest_id
        self._config = config or StreamConfig()
        self._clock = clock
        self._sleep = sleep
        self.state = StreamTickState()

    def __aiter__(self) -> AsyncIterator[str]:
        return self.frames()

    async def frames(self) -> AsyncIterator[str]:
        """Yield the hello frame, the initial marker, then one frame per poll."""
        try:
            self.state.last_seen_id = await self._latest_id()
        except Exception:
            logger.warning("Failed to read latest notes event id", exc_info=True)

        yield format_sse(EVENT_HELLO, {"ok": True})
        yield format_sse(EVENT_NOTES_CHANGED, {"id": self.state.last_seen_id})

        while True:
            await self._sleep(self._config.interval)
            try:
                latest = await self._latest_id()
            except Exception:
                logger.warning("Failed to poll latest notes event id", exc_info=True)
                continue

            payload = self.state.advance(latest, self._now_ms())
            yield payload_to_sse(payload)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)
