"""Ingestion API — the webhook target producers POST to.

Learn: The body is read raw and normalized by msgrelay.payload rather than
declared as a pydantic model. Producers send whatever their workflow node
emits (a string, {"message": ...}, {"body": ...}), and rejecting unknown
shapes would lose messages. Only a body that isn't JSON at all is refused.
"""

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from msgrelay.api.deps import other_methods, reject_method, relay_dep
from msgrelay.payload import PayloadError, parse_body
from msgrelay.realtime.relay import RelayServer
from msgrelay.schemas.message import EmitResponse

logger = structlog.get_logger()
router = APIRouter()


@router.post("/emit", response_model=EmitResponse)
async def emit_message(
    request: Request,
    relay: RelayServer = Depends(relay_dep),
):
    """Store a producer message and broadcast it to every push client."""
    try:
        payload = parse_body(await request.body())
    except PayloadError as e:
        logger.warning("emit.malformed_body", error=str(e))
        return JSONResponse(
            status_code=400,
            content={"status": "error", "message": str(e)},
        )

    msg = await relay.submit(payload)
    return EmitResponse(data=msg)


@router.api_route("/emit", methods=other_methods("POST"), include_in_schema=False)
async def emit_other_methods(request: Request):
    return reject_method(request)
