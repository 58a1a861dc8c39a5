"""Message schemas — the unit of transport and the HTTP envelopes around it."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MessageType = Literal["ai", "user"]


class Message(BaseModel):
    """A delivered message. Created once at ingestion, never mutated."""

    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: int = Field(description="Milliseconds since epoch; the cursor key")
    content: str
    type: MessageType = "ai"


class MessagesResponse(BaseModel):
    """Polling response for GET /api/messages."""

    model_config = ConfigDict(populate_by_name=True)

    messages: list[Message]
    last_timestamp: int = Field(alias="lastTimestamp")


class EmitResponse(BaseModel):
    status: str = "success"
    message: str = "Message stored successfully"
    data: Message
