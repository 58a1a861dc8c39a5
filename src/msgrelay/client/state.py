"""Connectivity states shared by the polling and push clients."""

import enum


class ConnectionState(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    # Push only: reconnect budget exhausted, waiting for reconnect()
    FAILED = "failed"
