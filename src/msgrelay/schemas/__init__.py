"""Pydantic schemas shared by the server routes and the clients."""

from msgrelay.schemas.message import EmitResponse, Message, MessagesResponse, MessageType

__all__ = ["EmitResponse", "Message", "MessagesResponse", "MessageType"]
