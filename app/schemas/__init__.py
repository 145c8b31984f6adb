"""Pydantic schemas for API payloads."""

from .auth import LoginRequest, SignupRequest, SignupResponse, Token
from .contacts import (
    ContactAdded,
    ContactCreate,
    ContactList,
    ContactRead,
    ContactRemoved,
    ContactSummary,
    LatestMessagePreview,
)
from .messages import (
    MessageCreate,
    MessageDeleted,
    MessageEnvelope,
    MessageList,
    MessageRead,
    MessageUpdate,
    UnreadCounts,
)
from .users import PublicUser, UserProfile, UserSearchResult

__all__ = [
    "ContactAdded",
    "ContactCreate",
    "ContactList",
    "ContactRead",
    "ContactRemoved",
    "ContactSummary",
    "LatestMessagePreview",
    "LoginRequest",
    "MessageCreate",
    "MessageDeleted",
    "MessageEnvelope",
    "MessageList",
    "MessageRead",
    "MessageUpdate",
    "PublicUser",
    "SignupRequest",
    "SignupResponse",
    "Token",
    "UnreadCounts",
    "UserProfile",
    "UserSearchResult",
]
