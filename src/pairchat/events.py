"""Event names shared by the server dispatcher and realtime clients."""

from __future__ import annotations

from enum import Enum


class ChatEvent(str, Enum):
    """Named events pushed to realtime subscribers."""

    NEW_MESSAGE = "new-message"
    MESSAGE_UPDATED = "message-updated"
    MESSAGE_DELETED = "message-deleted"
    CONTACT_ADDED = "contact-added"
    INCOMING_MESSAGE = "incoming-message"
    # Reserved for clients; the server never emits it.
    TYPING = "typing"
