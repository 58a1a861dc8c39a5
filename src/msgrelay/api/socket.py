"""Push negotiation endpoint.

Learn: Clients may hit /api/socket before opening the WebSocket. It makes
sure the relay exists and tells the client where to connect. Any method is
accepted; this is a warm-up call, not a resource.
"""

from fastapi import APIRouter, Depends

from msgrelay.api.deps import ALL_METHODS, relay_dep
from msgrelay.realtime.relay import RelayServer

router = APIRouter()


@router.api_route("/socket", methods=ALL_METHODS)
async def negotiate(relay: RelayServer = Depends(relay_dep)):
    return {
        "status": "ready",
        "path": "/ws",
        "connections": len(relay.connections),
    }
