"""msgrelay CLI — run the relay, act as a producer, or consume messages.

Usage:
    msgrelay serve                               # Run the relay (uvicorn)
    msgrelay emit "hello from n8n"               # POST a message as a producer
    msgrelay emit '{"body": {"k": 1}}' --json    # POST a raw JSON payload
    msgrelay poll --since 0                      # Consume by cursor polling
    msgrelay listen                              # Consume over the push socket
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import sys
from typing import Optional

import click
import httpx

from msgrelay import __version__
from msgrelay.schemas.message import Message

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


def _relay_url() -> str:
    """Relay base URL from MSGRELAY_RELAY_URL (see Settings.relay_url)."""
    from msgrelay.config import settings

    return settings.relay_url.rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the relay."""
    return httpx.AsyncClient(base_url=_relay_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _type_color(msg_type: str) -> str:
    return {"ai": "cyan", "user": "green"}.get(msg_type, "white")


def _print_message(msg: Message) -> None:
    tag = click.style(f"[{msg.type}]", fg=_type_color(msg.type))
    click.echo(f"{msg.timestamp}  {tag} {msg.content}")


def _state_printer(state) -> None:
    click.secho(f"-- {state.value}", dim=True, err=True)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="msgrelay")
def main():
    """msgrelay — webhook-to-client message relay."""


@main.command()
@click.option("--host", default=None, help="Bind host (default: MSGRELAY_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (default: MSGRELAY_PORT)")
@click.option("--reload", is_flag=True, help="Auto-reload for development")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the relay server.

    Runs a single worker on purpose: the message store and the socket set
    live in process memory, so extra workers would each see only part of
    the traffic.
    """
    import uvicorn

    from msgrelay.config import settings

    uvicorn.run(
        "msgrelay.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
        workers=1,
        log_level="debug" if settings.debug else "info",
    )


@main.command()
@click.argument("text")
@click.option("--type", "msg_type", type=click.Choice(["ai", "user"]), help="Message tag")
@click.option("--json", "as_json", is_flag=True, help="Send TEXT as a raw JSON payload")
def emit(text: str, msg_type: Optional[str], as_json: bool):
    """POST a message to the relay, the way a webhook producer would."""
    if as_json:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            click.secho(f"Error: TEXT is not valid JSON ({e})", fg="red", err=True)
            sys.exit(1)
    else:
        payload = {"message": text}
    if msg_type and isinstance(payload, dict):
        payload["type"] = msg_type

    _run(_emit_impl(payload))


async def _emit_impl(payload):
    async with _client() as c:
        try:
            r = await c.post("/api/emit", json=payload)
            r.raise_for_status()
        except httpx.HTTPError as e:
            click.secho(f"Error: emit failed: {e}", fg="red", err=True)
            sys.exit(1)
        msg = Message.model_validate(r.json()["data"])
        click.secho(f"Stored message {msg.id}", fg="green")


@main.command()
@click.option("--since", type=int, default=0, show_default=True, help="Starting cursor (ms)")
@click.option("--interval", type=float, default=None, help="Seconds between polls")
def poll(since: int, interval: Optional[float]):
    """Print messages as they arrive, using cursor polling."""
    from msgrelay.config import settings

    _run(_poll_impl(since, interval or settings.poll_interval_seconds))


async def _poll_impl(since: int, interval: float):
    from msgrelay.client.polling import PollingClient

    poller = PollingClient(_relay_url(), on_message=_print_message, interval=interval, since=since)
    click.echo(f"Polling {_relay_url()} every {interval}s (Ctrl+C to stop)")
    try:
        await poller.run_loop()
    finally:
        await poller.aclose()


@main.command()
@click.option("--url", default=None, help="WebSocket URL (default: derived from MSGRELAY_RELAY_URL)")
def listen(url: Optional[str]):
    """Print messages as they are pushed over the WebSocket."""
    _run(_listen_impl(url))


async def _listen_impl(url: Optional[str]):
    from msgrelay.client.push import PushClient, ReconnectPolicy, http_to_ws
    from msgrelay.client.state import ConnectionState
    from msgrelay.config import settings

    client = PushClient(
        url or http_to_ws(_relay_url()),
        on_message=_print_message,
        policy=ReconnectPolicy(
            max_attempts=settings.reconnect_attempts,
            delay=settings.reconnect_delay_seconds,
        ),
        on_state=_state_printer,
    )
    click.echo(f"Listening on {client.url} (Ctrl+C to stop)")
    try:
        await client.start()
        failed = client.state == ConnectionState.FAILED
    finally:
        await client.stop()

    if failed:
        click.secho("Gave up reconnecting to the relay.", fg="red", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
