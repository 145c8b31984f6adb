"""Redis pub/sub transport carrying realtime envelopes between nodes."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import redis.asyncio as redis_asyncio
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

_PUBLISH_ERRORS: tuple[type[BaseException], ...] = (
    RedisError,
    ConnectionError,
    TimeoutError,
    asyncio.TimeoutError,
)

_RECOVERY_BASE_DELAY = 0.5
_RECOVERY_MAX_DELAY = 30.0

MessageHandler = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(slots=True)
class BrokerConfig:
    """Configuration used for wiring the realtime transport layer."""

    redis_url: str | None
    prefix: str = "pairchat.realtime"
    node_id: str | None = None


class TransportUnavailableError(RuntimeError):
    """Raised when the broker cannot accept a publish or subscribe."""


class Subscription:
    """Handle returned when subscribing to a topic; ``close`` is idempotent."""

    def __init__(self, topic: str, cleanup: Callable[[], Awaitable[None]]) -> None:
        self._topic = topic
        self._cleanup = cleanup
        self._closed = False

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._cleanup()


@dataclass(slots=True)
class _ReaderState:
    topic: str
    channel: str
    handler: MessageHandler
    task: asyncio.Task[Any] | None = None
    pubsub: Any | None = None
    active: bool = True
    suspending: bool = False


class RedisTransport:
    """Publishes and consumes JSON payloads over Redis pub/sub.

    Readers that die because the connection dropped are re-attached by a
    background recovery task using exponential backoff.
    """

    def __init__(
        self,
        config: BrokerConfig,
        *,
        on_restart: Callable[[str], None] | None = None,
    ) -> None:
        self._config = config
        self._redis: Any | None = None
        self._states: list[_ReaderState] = []
        self._recovery_lock = asyncio.Lock()
        self._recovery_task: asyncio.Task[Any] | None = None
        self._on_restart = on_restart

    @property
    def node_id(self) -> str | None:
        return self._config.node_id

    @property
    def connected(self) -> bool:
        return self._redis is not None

    async def start(self) -> None:
        if self._config.redis_url and self._redis is None:
            await self._connect()

    async def stop(self) -> None:
        for state in list(self._states):
            await self._close_state(state)
        if self._recovery_task is not None:
            self._recovery_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._recovery_task
            self._recovery_task = None
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None

    async def _ensure_connected(self) -> None:
        if self._redis is None:
            try:
                await self.start()
            except (RedisError, OSError) as exc:
                raise TransportUnavailableError("Redis backend is unavailable") from exc
        if self._redis is None:
            raise TransportUnavailableError("Redis backend is not configured")

    def channel_for(self, topic: str) -> str:
        prefix = self._config.prefix.rstrip(".")
        return f"{prefix}.{topic}" if prefix else topic

    async def publish(self, topic: str, payload: dict[str, Any]) -> None:
        await self._ensure_connected()
        channel = self.channel_for(topic)
        try:
            await self._redis.publish(channel, json.dumps(payload))
        except _PUBLISH_ERRORS as exc:
            self._trigger_recovery("publish_failed")
            raise TransportUnavailableError("Redis backend is unavailable") from exc
        logger.debug("Published realtime payload", extra={"channel": channel})

    async def subscribe(self, topic: str, handler: MessageHandler) -> Subscription:
        await self._ensure_connected()
        state = _ReaderState(topic=topic, channel=self.channel_for(topic), handler=handler)
        self._states.append(state)
        try:
            await self._attach_reader(state)
        except Exception as exc:
            await self._close_state(state)
            self._trigger_recovery("subscribe_failed")
            if isinstance(exc, TransportUnavailableError):
                raise
            raise TransportUnavailableError("Redis backend is unavailable") from exc

        async def cleanup() -> None:
            await self._close_state(state)

        return Subscription(topic, cleanup)

    # ------------------------------------------------------------------
    # Connection management
    # ------------------------------------------------------------------
    async def _connect(self) -> None:
        client = redis_asyncio.from_url(
            self._config.redis_url,
            encoding="utf-8",
            decode_responses=True,
        )
        try:
            await client.ping()
        except (OSError, RedisError):
            logger.exception("Failed to connect to Redis realtime backend")
            await client.aclose()
            raise
        self._redis = client

    async def _pause_state(self, state: _ReaderState) -> None:
        state.suspending = True
        task = state.task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        state.task = None
        pubsub = state.pubsub
        if pubsub is not None:
            with contextlib.suppress(Exception):
                await pubsub.unsubscribe(state.channel)
            with contextlib.suppress(Exception):
                await pubsub.aclose()
        state.pubsub = None
        state.suspending = False

    async def _close_state(self, state: _ReaderState) -> None:
        state.active = False
        await self._pause_state(state)
        if state in self._states:
            self._states.remove(state)

    async def _attach_reader(self, state: _ReaderState) -> None:
        if self._redis is None:
            raise TransportUnavailableError("Redis backend is not configured")
        pubsub = self._redis.pubsub()
        try:
            await pubsub.subscribe(state.channel)
        except _PUBLISH_ERRORS as exc:
            await pubsub.aclose()
            raise TransportUnavailableError("Redis backend is unavailable") from exc
        state.pubsub = pubsub

        async def reader() -> None:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                raw = message.get("data")
                if not isinstance(raw, str):
                    continue
                try:
                    payload = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Discarded malformed realtime payload", extra={"channel": state.channel})
                    continue
                try:
                    await state.handler(payload)
                except Exception:
                    logger.exception("Realtime handler failed", extra={"channel": state.channel})

        task = asyncio.create_task(reader(), name=f"realtime-redis-{state.channel}")
        state.task = task
        task.add_done_callback(lambda finished: self._on_reader_done(state, finished))

    def _on_reader_done(self, state: _ReaderState, task: asyncio.Task[Any]) -> None:
        if not state.active or state.suspending or task.cancelled():
            return
        state.task = None
        state.pubsub = None
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Redis subscription reader stopped due to error; scheduling recovery",
                exc_info=exc,
                extra={"channel": state.channel},
            )
        else:
            logger.warning(
                "Redis subscription reader exited unexpectedly; scheduling recovery",
                extra={"channel": state.channel},
            )
        self._trigger_recovery("reader_stopped")

    def _trigger_recovery(self, reason: str) -> None:
        if not self._config.redis_url:
            return
        if self._recovery_task is not None and not self._recovery_task.done():
            return
        logger.info("Scheduling Redis realtime recovery", extra={"reason": reason})
        self._recovery_task = asyncio.create_task(
            self._recovery_runner(reason), name="realtime-redis-recovery"
        )

    async def _recovery_runner(self, reason: str) -> None:
        attempt = 0
        while True:
            delay = min(_RECOVERY_BASE_DELAY * (2**attempt), _RECOVERY_MAX_DELAY)
            await asyncio.sleep(delay)
            try:
                await self._restart(reason)
            except Exception:
                attempt += 1
                logger.exception(
                    "Redis realtime recovery attempt failed",
                    extra={"attempt": attempt, "reason": reason},
                )
                continue
            break
        self._recovery_task = None

    async def _restart(self, reason: str) -> None:
        async with self._recovery_lock:
            for state in list(self._states):
                await self._pause_state(state)
            if self._redis is not None:
                with contextlib.suppress(Exception):
                    await self._redis.aclose()
                self._redis = None
            await self.start()
            for state in [state for state in self._states if state.active]:
                await self._attach_reader(state)
        if self._on_restart is not None:
            self._on_restart(reason)
        logger.info(
            "Redis realtime backend recovered",
            extra={"reason": reason, "subscriptions": len(self._states)},
        )
