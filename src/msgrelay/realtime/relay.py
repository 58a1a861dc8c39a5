"""Relay server — ingestion, polling query, and push fan-out.

Learn: The relay is the only stateful object in the process. It owns the
MessageStore (polling path) and the ConnectionSet (push path), and every
submitted message goes to both:

  submit(payload) → stamp → store.append → broadcast "n8n-message"

There must be exactly ONE relay per app. Several entry points want it
(lifespan, HTTP routes, the WebSocket endpoint, the negotiation route), and
if any of them built its own, sockets registered on one relay would never
see messages submitted to another. So nobody constructs RelayServer
directly: they all call init_relay(app.state), which creates the relay the
first time and returns the same handle afterwards.
"""

import json
import threading
from typing import Any, Callable, Optional

import structlog

from msgrelay.config import settings
from msgrelay.payload import extract_content, extract_type, now_ms
from msgrelay.realtime.connections import Connection, ConnectionSet
from msgrelay.realtime.store import MessageStore
from msgrelay.schemas.message import Message

logger = structlog.get_logger()

MESSAGE_EVENT = "n8n-message"
CONNECTED_EVENT = "connected"
PONG_EVENT = "pong"


def encode_event(event: str, data: Any = None) -> str:
    """Wire frame for the push channel: {"event": ..., "data": ...}."""
    frame: dict[str, Any] = {"event": event}
    if data is not None:
        frame["data"] = data
    return json.dumps(frame)


class RelayNotInitializedError(RuntimeError):
    pass


class RelayServer:
    """Single authoritative relay for one process."""

    def __init__(
        self,
        capacity: Optional[int] = None,
        clock: Callable[[], int] = now_ms,
        send_timeout: Optional[float] = None,
    ):
        self.store = MessageStore(capacity or settings.store_capacity)
        self.connections = ConnectionSet(
            send_timeout or settings.broadcast_send_timeout_seconds
        )
        self._clock = clock
        self._last_timestamp = 0
        # Guards stamping + append so store order == timestamp order
        self._ingest_lock = threading.Lock()

    def _next_timestamp(self) -> int:
        """Strictly increasing: bump by 1 when the clock hasn't moved on."""
        ts = self._clock()
        if ts <= self._last_timestamp:
            ts = self._last_timestamp + 1
        self._last_timestamp = ts
        return ts

    def ingest(self, payload: Any) -> Message:
        """Stamp and store a producer payload without broadcasting it."""
        with self._ingest_lock:
            ts = self._next_timestamp()
            msg = Message(
                id=ts,
                timestamp=ts,
                content=extract_content(payload),
                type=extract_type(payload),
            )
            self.store.append(msg)
        return msg

    async def submit(self, payload: Any) -> Message:
        """Accept a producer payload: store it, then push it to every socket.

        Always succeeds. Resubmissions are stored again; there is no dedup.
        """
        msg = self.ingest(payload)
        delivered = await self.connections.broadcast(
            encode_event(MESSAGE_EVENT, msg.model_dump())
        )
        logger.info(
            "relay.message_submitted",
            message_id=msg.id,
            type=msg.type,
            delivered=delivered,
        )
        return msg

    def query(self, since: int = 0) -> tuple[list[Message], int]:
        """Polling contract — see MessageStore.query."""
        return self.store.query(since)

    def connect(self, conn: Connection) -> None:
        self.connections.add(conn)
        logger.info("relay.client_connected", connections=len(self.connections))

    def disconnect(self, conn: Connection) -> None:
        if self.connections.discard(conn):
            logger.info(
                "relay.client_disconnected", connections=len(self.connections)
            )

    def stats(self) -> dict[str, int]:
        return {
            "messages": len(self.store),
            "connections": len(self.connections),
            "lastTimestamp": self.store.last_timestamp,
        }


# ─── Per-app handle ───────────────────────────────────────

_init_lock = threading.Lock()


def init_relay(state: Any, **kwargs: Any) -> RelayServer:
    """Return the relay stored on `state`, creating it on first call.

    `state` is the hosting runtime's state object (FastAPI `app.state`).
    Repeated calls, from any entry point, get the same instance.
    """
    relay = getattr(state, "relay", None)
    if relay is not None:
        return relay

    with _init_lock:
        relay = getattr(state, "relay", None)
        if relay is None:
            relay = RelayServer(**kwargs)
            state.relay = relay
            logger.info("relay.initialized", capacity=relay.store.capacity)
    return relay


def get_relay(state: Any) -> RelayServer:
    """Look up the relay on `state` without creating one."""
    relay = getattr(state, "relay", None)
    if relay is None:
        raise RelayNotInitializedError(
            "Relay not initialized. Call init_relay() first."
        )
    return relay
