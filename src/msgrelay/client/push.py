"""Push client — persistent WebSocket delivery with bounded reconnection.

Learn: The reconnection policy is an explicit state machine, not a chain
of callbacks:

  disconnected → connecting → connected            (connect succeeded)
  connected → disconnected → connecting            (lost, attempts left)
  connected → disconnected → failed                (lost, budget spent)

Up to `max_attempts` consecutive reconnection attempts are made, `delay`
seconds apart. A successful connection resets the budget. Once the budget
is spent the client sits in FAILED and does nothing until reconnect() is
called. stop() interrupts everything, including a pending delay.

Messages are delivered to the callback exactly once each, in the order the
socket delivers them. There is no reordering or replay on this path; a
client that needs the backlog after an outage should poll.

Usage:
    client = PushClient("ws://localhost:8000/ws", on_message=print)
    client.start()
    ...
    await client.stop()
"""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog
import websockets
from websockets.exceptions import WebSocketException

from msgrelay.client.polling import MessageCallback, deliver
from msgrelay.client.state import ConnectionState
from msgrelay.payload import message_from_event
from msgrelay.realtime.relay import MESSAGE_EVENT

logger = structlog.get_logger()

# Errors that mean "the transport is gone", as opposed to bugs
TRANSPORT_ERRORS = (OSError, asyncio.TimeoutError, WebSocketException)


@dataclass(frozen=True)
class ReconnectPolicy:
    max_attempts: int = 5
    delay: float = 1.0


def http_to_ws(url: str) -> str:
    """Derive the push endpoint from a relay base URL."""
    url = url.rstrip("/")
    if url.startswith("https://"):
        url = "wss://" + url[len("https://"):]
    elif url.startswith("http://"):
        url = "ws://" + url[len("http://"):]
    return url if url.endswith("/ws") else url + "/ws"


class PushClient:
    """Receives broadcast messages over a long-lived WebSocket."""

    def __init__(
        self,
        url: str,
        on_message: MessageCallback,
        policy: ReconnectPolicy = ReconnectPolicy(),
        connect: Optional[Callable[[str], Any]] = None,
        on_state: Optional[Callable[[ConnectionState], None]] = None,
    ):
        self.url = url
        self.on_message = on_message
        self.policy = policy
        self.on_state = on_state
        self.state = ConnectionState.DISCONNECTED
        self.attempts = 0
        self._connect = connect or websockets.connect
        self._stop = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # ── State machine ─────────────────────────────────────────

    def _set_state(self, state: ConnectionState) -> None:
        if state == self.state:
            return
        logger.debug("push.state", url=self.url, old=self.state.value, new=state.value)
        self.state = state
        if self.on_state:
            self.on_state(state)

    async def _wait_delay(self) -> bool:
        """Sleep out the reconnect delay. Returns False if stop() came first."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=self.policy.delay)
        except asyncio.TimeoutError:
            return True
        return False

    async def run(self) -> None:
        """Connect and keep reconnecting until stopped or out of attempts."""
        self._stop.clear()
        self.attempts = 0

        while not self._stop.is_set():
            self._set_state(ConnectionState.CONNECTING)
            try:
                async with self._connect(self.url) as ws:
                    self.attempts = 0
                    self._set_state(ConnectionState.CONNECTED)
                    logger.info("push.connected", url=self.url)
                    async for frame in ws:
                        await self._handle_frame(frame)
            except TRANSPORT_ERRORS as e:
                logger.warning("push.transport_error", url=self.url, error=repr(e))

            self._set_state(ConnectionState.DISCONNECTED)
            if self._stop.is_set():
                break

            if self.attempts >= self.policy.max_attempts:
                self._set_state(ConnectionState.FAILED)
                logger.error(
                    "push.reconnect_exhausted",
                    url=self.url,
                    attempts=self.attempts,
                )
                return

            self.attempts += 1
            logger.info(
                "push.reconnecting",
                url=self.url,
                attempt=self.attempts,
                max_attempts=self.policy.max_attempts,
            )
            if not await self._wait_delay():
                break

        logger.info("push.stopped", url=self.url)

    async def _handle_frame(self, frame: Any) -> None:
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8", errors="replace")
        try:
            event = json.loads(frame)
        except json.JSONDecodeError:
            # Bare text from a non-relay source is still a message
            event = {"event": MESSAGE_EVENT, "data": frame}

        if not isinstance(event, dict) or event.get("event") != MESSAGE_EVENT:
            return

        try:
            await deliver(self.on_message, message_from_event(event.get("data")))
        except Exception:
            logger.exception("push.callback_error", url=self.url)

    # ── Lifecycle ─────────────────────────────────────────────

    def start(self) -> asyncio.Task:
        """Run the state machine in a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Stop the client: cancel any pending delay and close the socket."""
        self._stop.set()
        task, self._task = self._task, None
        if task is not None and not task.done():
            # Cancelling unwinds the connect context, which closes the socket
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._set_state(ConnectionState.DISCONNECTED)

    async def reconnect(self) -> asyncio.Task:
        """External instruction to try again with a fresh attempt budget."""
        await self.stop()
        logger.info("push.reconnect_requested", url=self.url)
        return self.start()
