"""Typed records persisted in the Redis store."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Mapping


@dataclass(slots=True, frozen=True)
class User:
    """User account as stored in the ``user:{id}`` hash."""

    id: str
    username: str
    email: str
    password_hash: str
    created_at: int
    avatar: str | None = None

    def to_hash(self) -> dict[str, str]:
        fields = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "passwordHash": self.password_hash,
            "createdAt": str(self.created_at),
        }
        if self.avatar:
            fields["avatar"] = self.avatar
        return fields

    @classmethod
    def from_hash(cls, fields: Mapping[str, str]) -> "User":
        return cls(
            id=fields["id"],
            username=fields["username"],
            email=fields["email"],
            password_hash=fields["passwordHash"],
            created_at=int(fields["createdAt"]),
            avatar=fields.get("avatar") or None,
        )


@dataclass(slots=True, frozen=True)
class Message:
    """A single chat message inside a room log."""

    id: str
    sender_id: str
    content: str
    timestamp: int
    is_edited: bool = False

    def edited(self, content: str) -> "Message":
        """Return a copy carrying new content and the edited flag."""

        return replace(self, content=content, is_edited=True)

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "senderId": self.sender_id,
            "content": self.content,
            "timestamp": self.timestamp,
        }
        if self.is_edited:
            payload["isEdited"] = True
        return payload

    def dumps(self) -> str:
        return json.dumps(self.to_payload(), separators=(",", ":"))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Message":
        return cls(
            id=str(payload["id"]),
            sender_id=str(payload["senderId"]),
            content=str(payload["content"]),
            timestamp=int(payload["timestamp"]),
            is_edited=bool(payload.get("isEdited", False)),
        )

    @classmethod
    def loads(cls, raw: str) -> "Message":
        return cls.from_payload(json.loads(raw))
