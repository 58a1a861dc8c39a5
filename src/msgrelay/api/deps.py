"""Shared route dependencies and method handling.

Learn: Producers and browser clients are not always well-behaved HTTP
citizens. Every endpoint answers OPTIONS with a bare 200 (CORS preflight,
even when the request lacks the headers CORSMiddleware looks for) and any
other unsupported method with a JSON 405.
"""

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from msgrelay.realtime.relay import RelayServer, init_relay

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def relay_dep(request: Request) -> RelayServer:
    """FastAPI dependency — the app's one relay, created on first use."""
    return init_relay(request.app.state)


def other_methods(*allowed: str) -> list[str]:
    """Methods a route must reject (or preflight) given the ones it serves."""
    return [m for m in ALL_METHODS if m not in allowed]


def reject_method(request: Request) -> Response:
    if request.method == "OPTIONS":
        return Response(status_code=200)
    return JSONResponse(status_code=405, content={"message": "Method not allowed"})
