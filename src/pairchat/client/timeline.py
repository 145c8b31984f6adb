"""Client-side message timeline reconciled against realtime events.

A sender shows its message immediately under a temporary id and includes that
id as ``optimisticId`` in the send request. The server echoes the token in the
``new-message`` broadcast, which lets every session holding the temporary
entry swap it for the confirmed one without reordering. Events may arrive more
than once and in any order relative to the HTTP response, so every mutation
here is idempotent.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace
from typing import Any, Iterable, Mapping

from pairchat.events import ChatEvent

TEMP_PREFIX = "temp-"


@dataclass(slots=True, frozen=True)
class TimelineEntry:
    id: str
    sender_id: str
    content: str
    timestamp: int
    is_edited: bool = False
    sender_username: str | None = None
    pending: bool = False

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TimelineEntry":
        return cls(
            id=str(payload["id"]),
            sender_id=str(payload["senderId"]),
            content=str(payload["content"]),
            timestamp=int(payload["timestamp"]),
            is_edited=bool(payload.get("isEdited", False)),
            sender_username=payload.get("senderUsername"),
        )


class MessageTimeline:
    """Ordered list of messages for one room as a client displays it."""

    def __init__(self, messages: Iterable[Mapping[str, Any]] = ()) -> None:
        self._entries: list[TimelineEntry] = [TimelineEntry.from_payload(m) for m in messages]

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> list[TimelineEntry]:
        return list(self._entries)

    def ids(self) -> list[str]:
        return [entry.id for entry in self._entries]

    def _index(self, entry_id: str) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return index
        return None

    def load(self, messages: Iterable[Mapping[str, Any]]) -> None:
        """Replace confirmed history, keeping still-pending local entries at the end."""

        pending = [entry for entry in self._entries if entry.pending]
        self._entries = [TimelineEntry.from_payload(m) for m in messages]
        known = set(self.ids())
        self._entries.extend(entry for entry in pending if entry.id not in known)

    def add_optimistic(
        self,
        sender_id: str,
        content: str,
        *,
        timestamp: int,
        sender_username: str | None = None,
    ) -> TimelineEntry:
        entry = TimelineEntry(
            id=f"{TEMP_PREFIX}{uuid.uuid4().hex}",
            sender_id=sender_id,
            content=content,
            timestamp=timestamp,
            sender_username=sender_username,
            pending=True,
        )
        self._entries.append(entry)
        return entry

    def apply_new_message(self, event: Mapping[str, Any]) -> bool:
        """Merge a ``new-message`` event; returns whether the timeline changed."""

        incoming = TimelineEntry.from_payload(event)
        if self._index(incoming.id) is not None:
            temp_id = event.get("optimisticId")
            if temp_id:
                # The HTTP response already confirmed the message elsewhere.
                self.discard(temp_id)
            return False
        temp_id = event.get("optimisticId")
        if temp_id:
            index = self._index(temp_id)
            if index is not None and self._entries[index].pending:
                placeholder = self._entries[index]
                self._entries[index] = replace(
                    incoming, sender_username=incoming.sender_username or placeholder.sender_username
                )
                return True
        self._entries.append(incoming)
        return True

    def confirm(self, temp_id: str, message: Mapping[str, Any]) -> bool:
        """Swap a pending entry for the server's copy returned by the send request."""

        confirmed = TimelineEntry.from_payload(message)
        index = self._index(temp_id)
        if self._index(confirmed.id) is not None:
            return self.discard(temp_id)
        if index is None:
            self._entries.append(confirmed)
            return True
        placeholder = self._entries[index]
        self._entries[index] = replace(confirmed, sender_username=placeholder.sender_username)
        return True

    def discard(self, temp_id: str) -> bool:
        index = self._index(temp_id)
        if index is None or not self._entries[index].pending:
            return False
        del self._entries[index]
        return True

    def apply_update(self, event: Mapping[str, Any]) -> bool:
        index = self._index(str(event["id"]))
        if index is None:
            return False
        current = self._entries[index]
        content = str(event["content"])
        if current.content == content and current.is_edited:
            return False
        self._entries[index] = replace(current, content=content, is_edited=True)
        return True

    def apply_delete(self, event: Mapping[str, Any]) -> bool:
        index = self._index(str(event["id"]))
        if index is None:
            return False
        del self._entries[index]
        return True

    def apply(self, event: str, data: Mapping[str, Any]) -> bool:
        """Route a realtime event to the matching reconciliation step."""

        if event == ChatEvent.NEW_MESSAGE.value:
            return self.apply_new_message(data)
        if event == ChatEvent.MESSAGE_UPDATED.value:
            return self.apply_update(data)
        if event == ChatEvent.MESSAGE_DELETED.value:
            return self.apply_delete(data)
        return False
