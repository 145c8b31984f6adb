"""Per-user unread counters keyed by room."""

from __future__ import annotations

from redis.asyncio import Redis

from app.database import KeySpace


class UnreadLedger:
    def __init__(self, redis: Redis, keys: KeySpace) -> None:
        self._redis = redis
        self._keys = keys

    def _unread_key(self, user_id: str) -> str:
        return self._keys("user", user_id, "unread")

    async def increment(self, user_id: str, room_id: str) -> int:
        return int(await self._redis.hincrby(self._unread_key(user_id), room_id, 1))

    async def reset(self, user_id: str, room_id: str) -> None:
        # An absent field reads as zero.
        await self._redis.hdel(self._unread_key(user_id), room_id)

    async def get_all(self, user_id: str) -> dict[str, int]:
        counts = await self._redis.hgetall(self._unread_key(user_id))
        return {room_id: int(count) for room_id, count in counts.items()}
