"""WebSocket endpoint — push delivery to connected clients.

Learn: Each client connects to /ws. The handler:
1. Accepts the socket and registers it on the app's relay
2. Sends a "connected" event so the client knows it is registered
3. Answers {"type": "ping"} with a "pong" event, in a text or binary frame;
   anything else the client sends is ignored
4. Unregisters on disconnect, however the disconnect happens

Broadcasts don't go through this handler at all: RelayServer.submit writes
straight to every registered socket. This loop only exists to notice when
the client goes away.
"""

import json

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from msgrelay.realtime.relay import CONNECTED_EVENT, PONG_EVENT, encode_event, init_relay

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def relay_websocket(websocket: WebSocket):
    """Long-lived push connection — one per client tab/process."""
    relay = init_relay(websocket.app.state)

    await websocket.accept()
    relay.connect(websocket)

    try:
        await websocket.send_text(
            encode_event(CONNECTED_EVENT, {"connections": len(relay.connections)})
        )
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            data = message.get("text")
            if data is None:
                data = (message.get("bytes") or b"").decode("utf-8", errors="replace")
            try:
                msg = json.loads(data)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await websocket.send_text(encode_event(PONG_EVENT))
    except WebSocketDisconnect:
        pass
    finally:
        relay.disconnect(websocket)
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
