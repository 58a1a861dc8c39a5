"""API route aggregation.

All routers registered here get mounted in main.py under /api.

Learn: There is no auth layer. Producers and consumers are trusted; the
relay only bounds how much it keeps in memory.
"""

from fastapi import APIRouter

from msgrelay.api.emit import router as emit_router
from msgrelay.api.health import router as health_router
from msgrelay.api.messages import router as messages_router
from msgrelay.api.socket import router as socket_router

api_router = APIRouter(prefix="/api")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(emit_router, tags=["ingestion"])
api_router.include_router(messages_router, tags=["polling"])
api_router.include_router(socket_router, tags=["push"])
