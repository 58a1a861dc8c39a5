"""Health and negotiation endpoint tests."""

import pytest
from httpx import ASGITransport, AsyncClient

from msgrelay.main import create_app


@pytest.mark.asyncio
async def test_health_returns_ok(client, relay):
    relay.ingest("x")
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["server"] == "ok"
    assert data["relay"] == "ok"
    assert data["messages"] == 1
    assert data["connections"] == 0
    assert "version" in data


@pytest.mark.asyncio
async def test_health_without_relay_is_degraded():
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.get("/api/health")
    assert resp.json()["status"] == "degraded"
    assert resp.json()["relay"] == "not initialized"
    # The probe must not create a relay
    assert getattr(app.state, "relay", None) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("method", ["GET", "POST", "OPTIONS"])
async def test_negotiation_accepts_any_method(method):
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        resp = await c.request(method, "/api/socket")
        assert resp.status_code == 200
        if method != "OPTIONS":
            assert resp.json()["status"] == "ready"
            assert resp.json()["path"] == "/ws"

        relay = app.state.relay
        await c.post("/api/emit", json={"message": "same relay"})
    assert len(relay.store) == 1
