"""In-memory doubles for Redis and the realtime transport."""

from __future__ import annotations

import json
from typing import Any

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import WatchError

from pairchat.realtime import Subscription, TransportUnavailableError


def _parse_bound(raw: Any) -> tuple[float, bool]:
    text = str(raw)
    exclusive = text.startswith("(")
    if exclusive:
        text = text[1:]
    if text in ("+inf", "inf"):
        return float("inf"), exclusive
    if text == "-inf":
        return float("-inf"), exclusive
    return float(text), exclusive


class FakePipeline:
    """Mimics ``redis.asyncio`` pipelines: buffered by default, immediate after WATCH."""

    def __init__(self, redis: "FakeRedis") -> None:
        self._redis = redis
        self._stack: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []
        self._watched: dict[str, int] = {}
        self._immediate = False

    async def __aenter__(self) -> "FakePipeline":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.reset()

    def __getattr__(self, name: str):
        if name not in FakeRedis.COMMANDS:
            raise AttributeError(name)

        def call(*args: Any, **kwargs: Any):
            if self._immediate:
                return getattr(self._redis, name)(*args, **kwargs)
            self._stack.append((name, args, kwargs))
            return self

        return call

    async def watch(self, *keys: str) -> None:
        self._immediate = True
        for key in keys:
            self._watched[key] = self._redis.version(key)

    def multi(self) -> None:
        self._immediate = False

    async def execute(self) -> list[Any]:
        try:
            for key, version in self._watched.items():
                if self._redis.version(key) != version:
                    raise WatchError("Watched variable changed.")
            results = []
            for name, args, kwargs in self._stack:
                results.append(await getattr(self._redis, name)(*args, **kwargs))
            return results
        finally:
            self.reset()

    def reset(self) -> None:
        self._stack.clear()
        self._watched.clear()
        self._immediate = False


class FakeRedis:
    """In-memory stand-in for the subset of Redis commands the stores use."""

    COMMANDS = frozenset(
        {
            "get",
            "set",
            "exists",
            "delete",
            "mget",
            "hset",
            "hget",
            "hgetall",
            "hincrby",
            "hdel",
            "sadd",
            "srem",
            "smembers",
            "sismember",
            "zadd",
            "zrem",
            "zscore",
            "zcard",
            "zrevrange",
            "zrangebyscore",
            "zrevrangebyscore",
        }
    )

    def __init__(self) -> None:
        self.data: dict[str, Any] = {}
        self._versions: dict[str, int] = {}
        self.published: list[tuple[str, str]] = []

    def version(self, key: str) -> int:
        return self._versions.get(key, 0)

    def _touch(self, key: str) -> None:
        self._versions[key] = self.version(key) + 1

    def _drop_if_empty(self, key: str) -> None:
        if key in self.data and not self.data[key]:
            del self.data[key]

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self)

    async def publish(self, channel: str, message: str) -> int:
        self.published.append((channel, message))
        return 0

    # strings
    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: Any, nx: bool = False, xx: bool = False) -> bool | None:
        exists = key in self.data
        if (nx and exists) or (xx and not exists):
            return None
        self.data[key] = str(value)
        self._touch(key)
        return True

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if key in self.data)

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
                self._touch(key)
        return removed

    async def mget(self, keys: list[str], *more: str) -> list[str | None]:
        names = [*keys, *more] if isinstance(keys, list) else [keys, *more]
        return [self.data.get(key) if isinstance(self.data.get(key), str) else None for key in names]

    # hashes
    async def hset(
        self, key: str, field: str | None = None, value: Any = None, mapping: dict[str, Any] | None = None
    ) -> int:
        items = dict(mapping or {})
        if field is not None:
            items[field] = value
        bucket = self.data.setdefault(key, {})
        added = sum(1 for name in items if name not in bucket)
        bucket.update({name: str(item) for name, item in items.items()})
        self._touch(key)
        return added

    async def hget(self, key: str, field: str) -> str | None:
        return self.data.get(key, {}).get(field)

    async def hgetall(self, key: str) -> dict[str, str]:
        return dict(self.data.get(key, {}))

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        bucket = self.data.setdefault(key, {})
        value = int(bucket.get(field, 0)) + amount
        bucket[field] = str(value)
        self._touch(key)
        return value

    async def hdel(self, key: str, *fields: str) -> int:
        bucket = self.data.get(key, {})
        removed = sum(1 for name in fields if bucket.pop(name, None) is not None)
        if removed:
            self._touch(key)
        self._drop_if_empty(key)
        return removed

    # sets
    async def sadd(self, key: str, *members: str) -> int:
        bucket = self.data.setdefault(key, set())
        added = len(set(members) - bucket)
        bucket.update(members)
        self._touch(key)
        return added

    async def srem(self, key: str, *members: str) -> int:
        bucket = self.data.get(key, set())
        removed = len(bucket & set(members))
        bucket.difference_update(members)
        if removed:
            self._touch(key)
        self._drop_if_empty(key)
        return removed

    async def smembers(self, key: str) -> set[str]:
        return set(self.data.get(key, set()))

    async def sismember(self, key: str, member: str) -> int:
        return int(member in self.data.get(key, set()))

    # sorted sets
    def _ordered(self, key: str) -> list[tuple[str, float]]:
        bucket = self.data.get(key, {})
        return sorted(bucket.items(), key=lambda item: (item[1], item[0]), reverse=True)

    async def zadd(self, key: str, mapping: dict[str, float]) -> int:
        bucket = self.data.setdefault(key, {})
        added = sum(1 for member in mapping if member not in bucket)
        bucket.update({member: float(score) for member, score in mapping.items()})
        self._touch(key)
        return added

    async def zrem(self, key: str, *members: str) -> int:
        bucket = self.data.get(key, {})
        removed = sum(1 for member in members if bucket.pop(member, None) is not None)
        if removed:
            self._touch(key)
        self._drop_if_empty(key)
        return removed

    async def zscore(self, key: str, member: str) -> float | None:
        return self.data.get(key, {}).get(member)

    async def zcard(self, key: str) -> int:
        return len(self.data.get(key, {}))

    async def zrevrange(self, key: str, start: int, end: int) -> list[str]:
        members = [member for member, _ in self._ordered(key)]
        stop = None if end == -1 else end + 1
        return members[start:stop]

    async def zrangebyscore(self, key: str, min: Any, max: Any) -> list[str]:
        members = await self.zrevrangebyscore(key, max, min)
        members.reverse()
        return members

    async def zrevrangebyscore(
        self, key: str, max: Any, min: Any, start: int | None = None, num: int | None = None
    ) -> list[str]:
        upper, upper_open = _parse_bound(max)
        lower, lower_open = _parse_bound(min)
        members = []
        for member, score in self._ordered(key):
            if score > upper or (upper_open and score == upper):
                continue
            if score < lower or (lower_open and score == lower):
                continue
            members.append(member)
        if start is not None and num is not None:
            members = members[start : start + num]
        return members


class InMemoryTransport:
    """Delivers published envelopes straight to local subscribers."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []
        self._handlers: dict[str, list[Any]] = {}

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        self._handlers.clear()

    def events(self, channel: str | None = None) -> list[tuple[str, dict[str, Any]]]:
        """Return ``(event, data)`` pairs published so far, optionally for one channel."""

        return [
            (payload["event"], payload["data"])
            for topic, payload in self.published
            if channel is None or topic == channel
        ]

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        payload = json.loads(json.dumps(payload))
        self.published.append((topic, payload))
        for handler in list(self._handlers.get(topic, ())):
            await handler(payload)

    async def subscribe(self, topic: str, handler) -> Subscription:
        self._handlers.setdefault(topic, []).append(handler)

        async def cleanup() -> None:
            handlers = self._handlers.get(topic, [])
            if handler in handlers:
                handlers.remove(handler)
            if not handlers:
                self._handlers.pop(topic, None)

        return Subscription(topic, cleanup)

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, ()))


class FailingTransport:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or TransportUnavailableError("Redis backend is unavailable")
        self.attempts = 0

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        self.attempts += 1
        raise self.exc

    async def subscribe(self, topic: str, handler) -> Subscription:
        raise self.exc


class UnreachableRedis:
    """A client whose server refuses every connection."""

    instances: list["UnreachableRedis"] = []

    @classmethod
    def from_url(cls, url: str, **_kwargs: Any) -> "UnreachableRedis":
        client = cls()
        cls.instances.append(client)
        return client

    async def ping(self) -> None:
        raise RedisConnectionError("Error 111 connecting to localhost:1. Connection refused.")

    async def aclose(self) -> None:
        return None
