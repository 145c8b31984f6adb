"""Room-keyed message log.

Each room owns a sorted set ``chat:{room}:messages`` whose members are message
ids scored by send timestamp, plus one string key per message holding its JSON
body. A message is therefore addressed by the compound ``(timestamp, id)``:
the id selects the body key and the sorted-set score must equal the supplied
timestamp. Messages that share a millisecond never alias one another.
"""

from __future__ import annotations

import logging
from typing import Sequence

from redis.asyncio import Redis

from app.database import KeySpace
from app.models import Message

logger = logging.getLogger(__name__)


class MessageLog:
    def __init__(self, redis: Redis, keys: KeySpace) -> None:
        self._redis = redis
        self._keys = keys

    def _index_key(self, room_id: str) -> str:
        return self._keys("chat", room_id, "messages")

    def _message_key(self, room_id: str, message_id: str) -> str:
        return self._keys("chat", room_id, "message", message_id)

    async def append(self, room_id: str, message: Message) -> None:
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.set(self._message_key(room_id, message.id), message.dumps())
            pipe.zadd(self._index_key(room_id), {message.id: message.timestamp})
            await pipe.execute()

    async def read(
        self,
        room_id: str,
        limit: int = 50,
        before_timestamp: int | None = None,
        before_id: str | None = None,
    ) -> list[Message]:
        """Return up to ``limit`` most recent messages in chronological order.

        With ``before_timestamp`` only messages strictly older than it are
        considered, which lets callers page backwards through history. Passing
        the id of the oldest message already held as ``before_id`` also keeps
        the messages sharing that timestamp but ordered before it.
        """

        if limit <= 0:
            return []
        index_key = self._index_key(room_id)
        if before_timestamp is None:
            message_ids = await self._redis.zrevrange(index_key, 0, limit - 1)
        elif before_id is None:
            message_ids = await self._redis.zrevrangebyscore(
                index_key, f"({before_timestamp}", "-inf", start=0, num=limit
            )
        else:
            # Same-score members come back in descending id order, so the ones
            # at or after the cursor form a prefix that is skipped.
            tied = await self._redis.zrangebyscore(index_key, before_timestamp, before_timestamp)
            skip = sum(1 for message_id in tied if message_id >= before_id)
            message_ids = await self._redis.zrevrangebyscore(
                index_key, before_timestamp, "-inf", start=skip, num=limit
            )
        messages = await self._load(room_id, message_ids)
        messages.reverse()
        return messages

    async def get(self, room_id: str, message_id: str, timestamp: int) -> Message | None:
        """Locate the message with ``message_id`` sent at exactly ``timestamp``."""

        score = await self._redis.zscore(self._index_key(room_id), message_id)
        if score is None or int(score) != timestamp:
            return None
        raw = await self._redis.get(self._message_key(room_id, message_id))
        if raw is None:
            return None
        return Message.loads(raw)

    async def update(
        self, room_id: str, message_id: str, timestamp: int, content: str
    ) -> Message | None:
        """Replace a message's content, keeping its id, sender and timestamp.

        Returns the updated message, or ``None`` when no message matches.
        """

        current = await self.get(room_id, message_id, timestamp)
        if current is None:
            return None
        updated = current.edited(content)
        # XX: a concurrent delete wins over this edit.
        written = await self._redis.set(
            self._message_key(room_id, message_id), updated.dumps(), xx=True
        )
        if not written:
            return None
        return updated

    async def remove(self, room_id: str, message_id: str, timestamp: int) -> bool:
        index_key = self._index_key(room_id)
        score = await self._redis.zscore(index_key, message_id)
        if score is None or int(score) != timestamp:
            return False
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zrem(index_key, message_id)
            pipe.delete(self._message_key(room_id, message_id))
            removed, _ = await pipe.execute()
        return removed == 1

    async def latest(self, room_id: str) -> Message | None:
        message_ids = await self._redis.zrevrange(self._index_key(room_id), 0, 0)
        messages = await self._load(room_id, message_ids)
        return messages[0] if messages else None

    async def count(self, room_id: str) -> int:
        return int(await self._redis.zcard(self._index_key(room_id)))

    async def _load(self, room_id: str, message_ids: Sequence[str]) -> list[Message]:
        if not message_ids:
            return []
        keys = [self._message_key(room_id, message_id) for message_id in message_ids]
        messages: list[Message] = []
        for message_id, raw in zip(message_ids, await self._redis.mget(keys)):
            if raw is None:
                logger.warning(
                    "Message body missing for indexed entry", extra={"room": room_id, "message": message_id}
                )
                continue
            messages.append(Message.loads(raw))
        return messages
