"""Schemas describing users as other people see them."""

from __future__ import annotations

from app.models import User

from .base import CamelModel


class PublicUser(CamelModel):
    id: str
    username: str
    avatar: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(id=user.id, username=user.username, avatar=user.avatar)


class UserProfile(PublicUser):
    email: str
    created_at: int


class UserSearchResult(CamelModel):
    users: list[PublicUser]
