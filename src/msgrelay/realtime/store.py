"""Message store — bounded, timestamp-ordered, in-memory.

Learn: This is the single source of truth for "what has been delivered so
far" on the polling path. It is deliberately volatile and deliberately
small: once `capacity` is reached, every append evicts the oldest message.
That is a memory bound, not data loss to worry about; a polling client
that falls more than `capacity` messages behind simply never sees the
evicted ones.

Cursor contract: query(since) returns messages with timestamp > since.
Timestamps are assigned strictly increasing by the relay, so a client that
feeds back the returned lastTimestamp never misses or repeats a message.
"""

import threading
from collections import deque

import structlog

from msgrelay.schemas.message import Message

logger = structlog.get_logger()

DEFAULT_CAPACITY = 100


class MessageStore:
    """FIFO-bounded buffer of delivered messages.

    Thread-safe: one lock guards the buffer and is only held for the
    in-memory read or mutation, never across I/O.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._messages: deque[Message] = deque()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def append(self, msg: Message) -> None:
        """Add a message at the tail, evicting the head once over capacity.

        Never fails. Callers must stamp messages in non-decreasing
        timestamp order; the store does not reorder.
        """
        evicted = None
        with self._lock:
            self._messages.append(msg)
            if len(self._messages) > self.capacity:
                evicted = self._messages.popleft()

        if evicted is not None:
            logger.debug(
                "store.evicted",
                message_id=evicted.id,
                timestamp=evicted.timestamp,
                capacity=self.capacity,
            )

    def query(self, since: int = 0) -> tuple[list[Message], int]:
        """Messages newer than `since`, oldest first, plus the new cursor.

        The cursor is the last returned timestamp, or `since` unchanged
        when nothing is newer.
        """
        with self._lock:
            newer = [m for m in self._messages if m.timestamp > since]
        last_timestamp = newer[-1].timestamp if newer else since
        return newer, last_timestamp

    def snapshot(self) -> list[Message]:
        """Copy of everything currently retained, oldest first."""
        with self._lock:
            return list(self._messages)

    @property
    def last_timestamp(self) -> int:
        """Timestamp of the newest retained message (0 when empty)."""
        with self._lock:
            return self._messages[-1].timestamp if self._messages else 0
