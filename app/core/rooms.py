"""Helpers for deriving and decomposing two-party room identifiers."""

from __future__ import annotations

ROOM_SEPARATOR = "_"


class InvalidRoomIdError(ValueError):
    """Raised when a room id cannot be split back into its two members."""


def room_id_for(user_id: str, other_id: str) -> str:
    """Return the room id shared by two users, independent of argument order."""

    first, second = sorted((user_id, other_id))
    return f"{first}{ROOM_SEPARATOR}{second}"


def parse_room_id(room_id: str) -> tuple[str, str]:
    """Split a room id into its member ids."""

    parts = room_id.split(ROOM_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise InvalidRoomIdError(f"Malformed room id: {room_id!r}")
    return parts[0], parts[1]


def is_participant(room_id: str, user_id: str) -> bool:
    try:
        members = parse_room_id(room_id)
    except InvalidRoomIdError:
        return False
    return user_id in members


def other_participant(room_id: str, user_id: str) -> str:
    """Return the member of ``room_id`` that is not ``user_id``."""

    first, second = parse_room_id(room_id)
    if user_id == first:
        return second
    if user_id == second:
        return first
    raise InvalidRoomIdError(f"User {user_id!r} is not a member of {room_id!r}")
