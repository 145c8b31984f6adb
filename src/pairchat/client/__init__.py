"""Client helpers: REST wrapper and optimistic message timeline."""

from .api import ChatAPIError, ChatClient, event_from_envelope
from .timeline import TEMP_PREFIX, MessageTimeline, TimelineEntry

__all__ = [
    "ChatAPIError",
    "ChatClient",
    "MessageTimeline",
    "TEMP_PREFIX",
    "TimelineEntry",
    "event_from_envelope",
]
