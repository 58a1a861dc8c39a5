"""Real-time relay — in-memory store + WebSocket fan-out.

Learn: Messages flow through two channels:
1. Producer → RelayServer.submit → MessageStore (polled by clients)
2. RelayServer.submit → every live WebSocket (pushed to clients)

Both channels are fed by the same submit call, so a client can switch
transports without missing what the other one saw.
"""
