"""msgrelay — webhook-to-client message relay.

Bridges an automation pipeline (n8n webhooks and the like) to interactive
clients. Producers POST short messages; clients receive them either over a
WebSocket broadcast or by polling with a timestamp cursor.
"""

__version__ = "0.1.0"
