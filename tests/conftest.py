"""Test fixtures — a fresh app (and so a fresh relay) per test.

Learn: The relay is in-memory and lives on app.state, so isolation is just
"build a new app". httpx's ASGITransport does not run the lifespan, so the
app fixture calls init_relay itself, the same call the lifespan makes.
"""

import asyncio
import json

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from msgrelay.main import create_app
from msgrelay.realtime.relay import init_relay


class FakeSocket:
    """Server-side stand-in for a push connection; records decoded frames."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    async def send_text(self, data: str) -> None:
        if self.fail:
            raise RuntimeError("Cannot call 'send' once a close message has been sent.")
        self.sent.append(json.loads(data))



class StalledSocket:
    """A push connection whose peer stopped reading: sends never complete."""

    def __init__(self):
        self._released = asyncio.Event()

    async def send_text(self, data: str) -> None:
        await self._released.wait()


@pytest.fixture()
def app():
    app = create_app()
    init_relay(app.state)
    return app


@pytest.fixture()
def relay(app):
    return app.state.relay


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client wired straight into the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def make_socket():
    """Factory for FakeSocket push connections."""
    return FakeSocket


@pytest.fixture()
def stalled_socket():
    return StalledSocket()
