"""Redis client wiring for the persistence store."""

from __future__ import annotations

import logging

import redis.asyncio as redis_asyncio
from starlette.requests import HTTPConnection

from app.config import get_settings

logger = logging.getLogger(__name__)


def create_redis(url: str | None = None) -> redis_asyncio.Redis:
    """Build the process-wide Redis client; connections are opened lazily."""

    settings = get_settings()
    return redis_asyncio.from_url(
        url or settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )


class KeySpace:
    """Builds namespaced persistence keys."""

    def __init__(self, namespace: str = "") -> None:
        self._prefix = f"{namespace}:" if namespace else ""

    def __call__(self, *parts: str) -> str:
        return self._prefix + ":".join(parts)


def get_redis(connection: HTTPConnection) -> redis_asyncio.Redis:
    """FastAPI dependency returning the client created at startup."""

    return connection.app.state.redis


def get_keyspace() -> KeySpace:
    return KeySpace(get_settings().redis_namespace)
