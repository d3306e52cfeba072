"""Change detection for notes sync transports."""

import json
from dataclasses import dataclass
from typing import Optional, Union

from .types import EVENT_NOTES_CHANGED, EVENT_PING


@dataclass(frozen=True)
class HeartbeatPayload:
    """Nothing changed; keeps the connection alive."""
    ts: float
    event: str = EVENT_PING

    def to_dict(self) -> dict:
        return {"event": self.event, "data": {"ts": self.ts}}


@dataclass(frozen=True)
class ChangedPayload:
    """A newer notes event exists."""
    id: str
    event: str = EVENT_NOTES_CHANGED

    def to_dict(self) -> dict:
        return {"event": self.event, "data": {"id": self.id}}


TickPayload = Union[HeartbeatPayload, ChangedPayload]


@dataclass(frozen=True)
class TickResult:
    """Outcome of one tick."""
    next_last_seen_id: Optional[str]
    payload: TickPayload

    @property
    def changed(self) -> bool:
        return isinstance(self.payload, ChangedPayload)


def tick(last_seen_id: Optional[str], latest_id: Optional[str], now: float) -> TickResult:
    """
    Decide between a change notification and a heartbeat.

    Args:
        last_seen_id: Latest event id the connection has already reported
        latest_id: Latest event id currently stored (None if no events)
        now: Current timestamp for the heartbeat

    Returns:
        TickResult with the id to carry into the next tick
    """
    if latest_id and latest_id != last_seen_id:
        return TickResult(next_last_seen_id=latest_id, payload=ChangedPayload(id=latest_id))

    return TickResult(next_last_seen_id=last_seen_id, payload=HeartbeatPayload(ts=now))


@dataclass
class StreamTickState:
    """Per-connection tick state. Owned by a single connection."""
    last_seen_id: Optional[str] = None

    def advance(self, latest_id: Optional[str], now: float) -> TickPayload:
        """Run one tick and store the resulting last-seen id."""
        result = tick(self.last_seen_id, latest_id, now)
        self.last_seen_id = result.next_last_seen_id
        return result.payload


def format_sse(event: str, data: object) -> str:
    """Render one server-sent-events frame."""
    return f"event: {event}\ndata: {json.dumps(data, separators=(',', ':'))}\n\n"


def payload_to_sse(payload: TickPayload) -> str:
    """Render a tick payload as a server-sent-events frame."""
    body = payload.to_dict()
    return format_sse(body["event"], body["data"])
