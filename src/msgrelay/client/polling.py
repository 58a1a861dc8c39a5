"""Polling client — pull-based delivery with a timestamp cursor.

Learn: No persistent connection. Every `interval` seconds the client asks
the relay for everything newer than its cursor, hands each message to the
callback in order, and moves the cursor to the returned lastTimestamp.

  tick → GET /api/messages?since=cursor → callback(msg)... → cursor = lastTimestamp

A failed tick (relay down, network error, non-2xx) leaves the cursor alone
and marks the client disconnected; the next successful tick picks up
exactly where the last one left off, as long as the relay hasn't evicted
the messages in between.

Usage:
    poller = PollingClient("http://localhost:8000", on_message=print)
    asyncio.create_task(poller.run_loop())
    ...
    poller.stop()
"""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

import httpx
import structlog

from msgrelay.client.state import ConnectionState
from msgrelay.schemas.message import Message, MessagesResponse

logger = structlog.get_logger()

MessageCallback = Callable[[Message], Union[None, Awaitable[None]]]


async def deliver(callback: MessageCallback, msg: Message) -> None:
    """Invoke a sync or async consumer callback."""
    result = callback(msg)
    if inspect.isawaitable(result):
        await result


class PollingClient:
    """Periodically fetches new messages from the relay."""

    def __init__(
        self,
        base_url: str,
        on_message: MessageCallback,
        interval: float = 2.0,
        since: int = 0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.on_message = on_message
        self.interval = interval
        self.cursor = since
        self.state = ConnectionState.DISCONNECTED
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.base_url, timeout=10.0
        )
        self._stop = asyncio.Event()

    async def poll(self) -> list[Message]:
        """Run one tick. Returns the messages delivered (empty on failure)."""
        try:
            r = await self._http.get(
                f"{self.base_url}/api/messages", params={"since": self.cursor}
            )
            r.raise_for_status()
            page = MessagesResponse.model_validate(r.json())
        except (httpx.HTTPError, ValueError) as e:
            if self.state != ConnectionState.DISCONNECTED:
                logger.warning("poller.disconnected", error=str(e), cursor=self.cursor)
            self.state = ConnectionState.DISCONNECTED
            return []

        if self.state != ConnectionState.CONNECTED:
            logger.info("poller.connected", cursor=self.cursor)
        self.state = ConnectionState.CONNECTED

        for msg in page.messages:
            await deliver(self.on_message, msg)

        self.cursor = max(self.cursor, page.last_timestamp)
        return page.messages

    async def run_loop(self) -> None:
        """Poll immediately, then every `interval` seconds until stop()."""
        self._stop.clear()
        logger.info("poller.started", base_url=self.base_url, interval=self.interval)

        while not self._stop.is_set():
            try:
                await self.poll()
            except Exception:
                # Consumer callback raised; keep polling
                logger.exception("poller.callback_error")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

        logger.info("poller.stopped", cursor=self.cursor)

    def stop(self) -> None:
        """Signal the loop to stop; interrupts the current wait."""
        self._stop.set()
        logger.info("poller.stopping")

    async def aclose(self) -> None:
        self.stop()
        if self._owns_client:
            await self._http.aclose()
