"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The lifespan initializes the relay up front so the first
producer request doesn't pay for it; routes still go through init_relay,
which hands back that same instance.
"""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from msgrelay import __version__
from msgrelay.api import api_router
from msgrelay.config import settings
from msgrelay.realtime.relay import init_relay

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info(
        "msgrelay.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    relay = init_relay(app.state)

    yield

    # The store is volatile; whatever is in it goes away with the process
    logger.info("msgrelay.shutdown", **relay.stats())


def create_app() -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="msgrelay",
        description="Webhook-to-client message relay: WebSocket push and cursor polling",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → CORS → handler

    from msgrelay.middleware.request_id import RequestIdMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    from msgrelay.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: msgrelay.main:app)
app = create_app()
