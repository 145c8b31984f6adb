"""Identity record store backed by Redis hashes and lookup keys."""

from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import WatchError

from app.database import KeySpace
from app.models import User

logger = logging.getLogger(__name__)


class IdentityConflictError(Exception):
    """Raised when a signup collides with an existing email or username."""


class DuplicateEmailError(IdentityConflictError):
    pass


class DuplicateUsernameError(IdentityConflictError):
    pass


class UserStore:
    """CRUD-less identity store: users are created once and only read afterwards."""

    def __init__(self, redis: Redis, keys: KeySpace) -> None:
        self._redis = redis
        self._keys = keys

    def _record_key(self, user_id: str) -> str:
        return self._keys("user", user_id)

    def _email_key(self, email: str) -> str:
        return self._keys("user", "email", email.lower())

    def _username_key(self, username: str) -> str:
        return self._keys("user", "username", username.lower())

    async def create_user(self, user: User) -> None:
        """Persist ``user`` and both lookup keys, or raise on a collision.

        The uniqueness check and the write run inside one optimistic
        transaction so two concurrent signups cannot both claim a name.
        """

        email_key = self._email_key(user.email)
        username_key = self._username_key(user.username)
        async with self._redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(email_key, username_key)
                if await pipe.exists(email_key):
                    raise DuplicateEmailError(user.email)
                if await pipe.exists(username_key):
                    raise DuplicateUsernameError(user.username)
                pipe.multi()
                pipe.hset(self._record_key(user.id), mapping=user.to_hash())
                pipe.set(email_key, user.id)
                pipe.set(username_key, user.id)
                await pipe.execute()
            except WatchError as exc:
                logger.info("Concurrent signup detected for %s", user.username)
                raise IdentityConflictError(user.username) from exc
        logger.info("Created user %s", user.id)

    async def get_user_by_id(self, user_id: str) -> User | None:
        fields = await self._redis.hgetall(self._record_key(user_id))
        if not fields:
            return None
        return User.from_hash(fields)

    async def get_user_by_email(self, email: str) -> User | None:
        user_id = await self._redis.get(self._email_key(email))
        if not user_id:
            return None
        return await self.get_user_by_id(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        user_id = await self._redis.get(self._username_key(username))
        if not user_id:
            return None
        return await self.get_user_by_id(user_id)

    async def username_exists(self, username: str) -> bool:
        return await self._redis.exists(self._username_key(username)) == 1

    async def email_exists(self, email: str) -> bool:
        return await self._redis.exists(self._email_key(email)) == 1
