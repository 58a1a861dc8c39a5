"""Consumer strategies — poll the relay over HTTP or hold a push socket.

UI, speech and chat-history layers consume Message objects through the
callback of either client and never touch the relay directly.
"""

from msgrelay.client.polling import PollingClient
from msgrelay.client.push import PushClient, ReconnectPolicy
from msgrelay.client.state import ConnectionState

__all__ = ["ConnectionState", "PollingClient", "PushClient", "ReconnectPolicy"]
