"""WebSocket push endpoint tests.

Learn: These use Starlette's synchronous TestClient as a context manager,
so HTTP requests and WebSocket sessions share one event loop. That is what
lets a POST /api/emit broadcast straight into an open test socket.
"""

from fastapi.testclient import TestClient

from msgrelay.main import create_app
from msgrelay.realtime.relay import MESSAGE_EVENT


def test_connected_event_on_open():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            hello = ws.receive_json()
            assert hello == {"event": "connected", "data": {"connections": 1}}


def test_emit_is_pushed_to_open_socket():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.receive_json()  # connected

            r = tc.post("/api/emit", json={"message": "pushed"})
            assert r.status_code == 200

            frame = ws.receive_json()
            assert frame["event"] == MESSAGE_EVENT
            assert frame["data"] == r.json()["data"]


def test_broadcast_reaches_every_socket_in_order():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as a, tc.websocket_connect("/ws") as b:
            a.receive_json()
            b.receive_json()

            for text in ("first", "second"):
                tc.post("/api/emit", json={"message": text})

            for ws in (a, b):
                contents = [ws.receive_json()["data"]["content"] for _ in range(2)]
                assert contents == ["first", "second"]


def test_socket_still_served_after_renegotiation():
    """A second initialization attempt must not split the connection set."""
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.receive_json()

            assert tc.get("/api/socket").status_code == 200
            tc.post("/api/emit", json={"message": "after negotiate"})

            assert ws.receive_json()["data"]["content"] == "after negotiate"


def test_ping_pong():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_text("not json at all")
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"event": "pong"}


def test_binary_frames_do_not_end_the_connection():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.receive_json()
            ws.send_bytes(b"\x00\x01\xff")
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"event": "pong"}

            ws.send_bytes(b'{"type": "ping"}')
            assert ws.receive_json() == {"event": "pong"}

            tc.post("/api/emit", json={"message": "still registered"})
            assert ws.receive_json()["data"]["content"] == "still registered"


def test_pushed_messages_are_also_pollable():
    with TestClient(create_app()) as tc:
        with tc.websocket_connect("/ws") as ws:
            ws.receive_json()
            tc.post("/api/emit", json={"message": "both paths"})
            pushed = ws.receive_json()["data"]

        polled = tc.get("/api/messages", params={"since": 0}).json()["messages"]
        assert polled == [pushed]
