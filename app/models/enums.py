from __future__ import annotations

from enum import Enum

from pairchat.events import ChatEvent


class MessageAction(str, Enum):
    """Message lifecycle transitions recorded in metrics."""

    SENT = "sent"
    EDITED = "edited"
    DELETED = "deleted"


__all__ = ["ChatEvent", "MessageAction"]
