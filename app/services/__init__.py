"""Application service helpers."""

from .contacts import ContactStore
from .fanout import FanoutDispatcher, chat_channel, user_channel
from .messages import MessageLog
from .unread import UnreadLedger
from .users import DuplicateEmailError, DuplicateUsernameError, IdentityConflictError, UserStore

__all__ = [
    "ContactStore",
    "DuplicateEmailError",
    "DuplicateUsernameError",
    "FanoutDispatcher",
    "IdentityConflictError",
    "MessageLog",
    "UnreadLedger",
    "UserStore",
    "chat_channel",
    "user_channel",
]
