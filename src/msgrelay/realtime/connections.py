"""Live push connections and best-effort broadcast.

Learn: Membership changes whenever a socket connects or drops, which can
happen while a broadcast is in flight. Broadcast therefore works on a
snapshot list taken up front, and a send that fails (socket mid-teardown)
just removes that connection. The producer that triggered the broadcast
never sees the failure.
"""

import asyncio
import threading
from typing import Any, Protocol

import structlog

logger = structlog.get_logger()


class Connection(Protocol):
    """Anything that can receive a text frame (e.g. a Starlette WebSocket)."""

    async def send_text(self, data: str) -> None: ...


class ConnectionSet:
    """The set of live push connections."""

    def __init__(self, send_timeout: float = 5.0):
        self.send_timeout = send_timeout
        self._connections: set[Any] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def __contains__(self, conn: Any) -> bool:
        with self._lock:
            return conn in self._connections

    def add(self, conn: Connection) -> None:
        with self._lock:
            self._connections.add(conn)

    def discard(self, conn: Connection) -> bool:
        """Remove a connection. Returns False if it was already gone."""
        with self._lock:
            if conn not in self._connections:
                return False
            self._connections.remove(conn)
            return True

    def snapshot(self) -> list[Connection]:
        with self._lock:
            return list(self._connections)

    async def _send(self, conn: Connection, frame: str) -> None:
        # A client that stops reading must not hold up the producer
        await asyncio.wait_for(conn.send_text(frame), timeout=self.send_timeout)

    async def broadcast(self, frame: str) -> int:
        """Send a text frame to every live connection.

        Returns the number of connections the frame reached. Failed sends
        drop the connection; a send still pending after `send_timeout`
        seconds counts as failed.
        """
        targets = self.snapshot()
        if not targets:
            return 0

        results = await asyncio.gather(
            *(self._send(conn, frame) for conn in targets),
            return_exceptions=True,
        )

        delivered = 0
        for conn, result in zip(targets, results):
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                self.discard(conn)
                logger.info("connections.send_dropped", error=repr(result))
            else:
                delivered += 1
        return delivered
