"""Polling API — cursor-based message retrieval.

Clients call GET /api/messages?since=<lastTimestamp> on an interval and
feed the returned lastTimestamp into the next call.
"""

from fastapi import APIRouter, Depends, Query, Request

from msgrelay.api.deps import other_methods, reject_method, relay_dep
from msgrelay.realtime.relay import RelayServer
from msgrelay.schemas.message import MessagesResponse

router = APIRouter()


@router.get("/messages", response_model=MessagesResponse, response_model_by_alias=True)
async def list_messages(
    since: int = Query(0, description="Return messages with timestamp > since (ms)"),
    relay: RelayServer = Depends(relay_dep),
):
    messages, last_timestamp = relay.query(since)
    return MessagesResponse(messages=messages, last_timestamp=last_timestamp)


@router.api_route("/messages", methods=other_methods("GET"), include_in_schema=False)
async def messages_other_methods(request: Request):
    return reject_method(request)
