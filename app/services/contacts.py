"""Symmetric contact graph stored as two reverse Redis sets."""

from __future__ import annotations

from redis.asyncio import Redis

from app.database import KeySpace


class ContactStore:
    def __init__(self, redis: Redis, keys: KeySpace) -> None:
        self._redis = redis
        self._keys = keys

    def _contacts_key(self, user_id: str) -> str:
        return self._keys("user", user_id, "contacts")

    async def add_contact(self, user_id: str, contact_id: str) -> None:
        """Insert both memberships; re-adding an existing edge is a no-op."""

        if user_id == contact_id:
            raise ValueError("A user cannot be their own contact")
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.sadd(self._contacts_key(user_id), contact_id)
            pipe.sadd(self._contacts_key(contact_id), user_id)
            await pipe.execute()

    async def remove_contact(self, user_id: str, contact_id: str) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.srem(self._contacts_key(user_id), contact_id)
            pipe.srem(self._contacts_key(contact_id), user_id)
            await pipe.execute()

    async def is_contact(self, user_id: str, contact_id: str) -> bool:
        return bool(await self._redis.sismember(self._contacts_key(user_id), contact_id))

    async def get_contacts(self, user_id: str) -> set[str]:
        return set(await self._redis.smembers(self._contacts_key(user_id)))
