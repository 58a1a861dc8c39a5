"""Application configuration via environment variables.

Uses pydantic-settings to load config from env vars with MSGRELAY_ prefix.
Server-side knobs (capacity, CORS) and client-side knobs (relay URL, poll
interval, reconnect budget) live in the same Settings object so the CLI and
the server agree on defaults.

Learn: The relay is volatile by design, so there is nothing to configure
for storage beyond how many messages to keep in memory.
"""

from pydantic import model_validator
from pydantic_settings import BaseSettings

MESSAGE_TYPES = ("ai", "user")


class Settings(BaseSettings):
    """All app configuration. Set via MSGRELAY_* env vars."""

    # Server
    environment: str = "development"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS: producers and browser clients come from anywhere
    cors_origins: list[str] = ["*"]

    # Message store
    store_capacity: int = 100
    default_message_type: str = "ai"
    placeholder_content: str = "No message content"

    # Push: a socket that takes longer than this to accept a frame is dropped
    broadcast_send_timeout_seconds: float = 5.0

    # Clients
    relay_url: str = "http://localhost:8000"
    poll_interval_seconds: float = 2.0
    reconnect_attempts: int = 5
    reconnect_delay_seconds: float = 1.0

    model_config = {"env_prefix": "MSGRELAY_"}

    @model_validator(mode="after")
    def validate_relay_settings(self):
        """Reject values the relay cannot run with."""
        if self.store_capacity < 1:
            raise ValueError("MSGRELAY_STORE_CAPACITY must be at least 1")
        if self.broadcast_send_timeout_seconds <= 0:
            raise ValueError("MSGRELAY_BROADCAST_SEND_TIMEOUT_SECONDS must be positive")
        if self.default_message_type not in MESSAGE_TYPES:
            raise ValueError(
                "MSGRELAY_DEFAULT_MESSAGE_TYPE must be one of: "
                + ", ".join(MESSAGE_TYPES)
            )
        return self


# Singleton, import this everywhere
settings = Settings()
