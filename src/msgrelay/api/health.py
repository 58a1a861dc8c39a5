"""Health check endpoint.

Learn: Reports the relay's in-memory state. Looks the relay up without
creating it, so a relay that was never initialized shows as degraded
instead of being silently conjured by the health probe.
"""

from fastapi import APIRouter, Request

from msgrelay import __version__
from msgrelay.realtime.relay import RelayNotInitializedError, get_relay

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and relay state."""
    checks = {"server": "ok", "version": __version__}

    try:
        relay = get_relay(request.app.state)
    except RelayNotInitializedError:
        return {"status": "degraded", "relay": "not initialized", **checks}

    return {"status": "healthy", "relay": "ok", **checks, **relay.stats()}
