from .enums import ChatEvent, MessageAction
from .records import Message, User

__all__ = [
    "ChatEvent",
    "Message",
    "MessageAction",
    "User",
]
