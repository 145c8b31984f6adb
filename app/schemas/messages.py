"""Schemas related to chat messages."""

from __future__ import annotations

from pydantic import Field

from app.models import Message

from .base import CamelModel


class MessageRead(CamelModel):
    """Serialized representation of a stored message."""

    id: str
    sender_id: str
    content: str
    timestamp: int
    is_edited: bool = False

    @classmethod
    def from_message(cls, message: Message) -> "MessageRead":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            content=message.content,
            timestamp=message.timestamp,
            is_edited=message.is_edited,
        )


class MessageList(CamelModel):
    messages: list[MessageRead]


class MessageEnvelope(CamelModel):
    message: MessageRead


class MessageCreate(CamelModel):
    recipient_id: str = Field(..., min_length=1)
    content: str
    optimistic_id: str | None = Field(
        default=None, description="Client correlation token echoed in the realtime broadcast"
    )


class MessageUpdate(CamelModel):
    room_id: str = Field(..., min_length=1)
    message_id: str = Field(..., min_length=1)
    timestamp: int
    content: str


class MessageDeleted(CamelModel):
    success: bool = True
    message_id: str


class UnreadCounts(CamelModel):
    unread: dict[str, int]
