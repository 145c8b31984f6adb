"""Core utilities for the pairchat backend."""

from .identifiers import new_id, now_ms
from .rooms import InvalidRoomIdError, is_participant, other_participant, parse_room_id, room_id_for

__all__ = [
    "InvalidRoomIdError",
    "is_participant",
    "new_id",
    "now_ms",
    "other_participant",
    "parse_room_id",
    "room_id_for",
]
