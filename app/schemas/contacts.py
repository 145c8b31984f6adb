"""Schemas for the contact list and contact management."""

from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class ContactCreate(CamelModel):
    contact_id: str = Field(..., min_length=1)


class LatestMessagePreview(CamelModel):
    content: str
    timestamp: int
    is_own: bool


class ContactRead(CamelModel):
    id: str
    username: str
    avatar: str | None = None
    room_id: str


class ContactSummary(ContactRead):
    latest_message: LatestMessagePreview | None = None


class ContactList(CamelModel):
    contacts: list[ContactSummary]


class ContactAdded(CamelModel):
    message: str = "Contact added"
    contact: ContactRead


class ContactRemoved(CamelModel):
    message: str = "Contact removed"
    contact_id: str
