"""Scoped, reference-counted channel subscriptions.

Several local consumers (for example two browser tabs served by the same
node, or a sidebar and a chat view) frequently want the same channel. Each of
them acquires its own :class:`ChannelHandle` and binds the events it cares
about; the underlying transport subscription is shared and only closed when
the last handle is released. Releasing a handle drops that handle's bindings
and nothing else.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Protocol

from .transport import MessageHandler, Subscription

logger = logging.getLogger(__name__)

EventCallback = Callable[[str, dict[str, Any]], Awaitable[None]]

ANY_EVENT = "*"


class SubscribingTransport(Protocol):
    async def subscribe(self, topic: str, handler: MessageHandler) -> Subscription: ...


class ChannelHandle:
    """A single consumer's view of a shared channel subscription."""

    def __init__(self, channel: str, owner: "ChannelSubscriptions") -> None:
        self._channel = channel
        self._owner = owner
        self._bindings: dict[str, list[EventCallback]] = defaultdict(list)
        self._released = False

    @property
    def channel(self) -> str:
        return self._channel

    @property
    def released(self) -> bool:
        return self._released

    def bind(self, event: str, callback: EventCallback) -> None:
        """Register ``callback`` for ``event``; ``"*"`` receives every event."""

        if self._released:
            raise RuntimeError(f"Handle for {self._channel!r} was already released")
        self._bindings[event].append(callback)

    def unbind(self, event: str | None = None) -> None:
        if event is None:
            self._bindings.clear()
        else:
            self._bindings.pop(event, None)

    async def dispatch(self, event: str, data: dict[str, Any]) -> None:
        callbacks = [*self._bindings.get(event, ()), *self._bindings.get(ANY_EVENT, ())]
        for callback in callbacks:
            try:
                await callback(event, data)
            except Exception:
                logger.exception(
                    "Channel callback failed", extra={"channel": self._channel, "event": event}
                )

    async def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._bindings.clear()
        await self._owner._release(self)


class _SharedChannel:
    def __init__(self) -> None:
        self.handles: set[ChannelHandle] = set()
        self.subscription: Subscription | None = None


class ChannelSubscriptions:
    """Registry sharing one transport subscription per channel."""

    def __init__(self, transport: SubscribingTransport) -> None:
        self._transport = transport
        self._channels: dict[str, _SharedChannel] = {}
        self._lock = asyncio.Lock()

    def active_channels(self) -> set[str]:
        return set(self._channels)

    def handle_count(self, channel: str) -> int:
        shared = self._channels.get(channel)
        return len(shared.handles) if shared else 0

    async def open(self, channel: str) -> ChannelHandle:
        """Acquire a handle without a context manager; the caller must release it."""

        async with self._lock:
            shared = self._channels.get(channel)
            if shared is None:
                shared = _SharedChannel()

                async def deliver(envelope: dict[str, Any]) -> None:
                    await self._deliver(channel, envelope)

                shared.subscription = await self._transport.subscribe(channel, deliver)
                self._channels[channel] = shared
                logger.debug("Opened shared subscription", extra={"channel": channel})
            handle = ChannelHandle(channel, self)
            shared.handles.add(handle)
            return handle

    @asynccontextmanager
    async def acquire(self, channel: str) -> AsyncIterator[ChannelHandle]:
        handle = await self.open(channel)
        try:
            yield handle
        finally:
            await handle.release()

    async def close(self) -> None:
        async with self._lock:
            channels = list(self._channels.values())
            self._channels.clear()
        for shared in channels:
            for handle in list(shared.handles):
                handle._released = True
            if shared.subscription is not None:
                await shared.subscription.close()

    async def _release(self, handle: ChannelHandle) -> None:
        async with self._lock:
            shared = self._channels.get(handle.channel)
            if shared is None:
                return
            shared.handles.discard(handle)
            if shared.handles:
                return
            self._channels.pop(handle.channel, None)
        if shared.subscription is not None:
            await shared.subscription.close()
            logger.debug("Closed shared subscription", extra={"channel": handle.channel})

    async def _deliver(self, channel: str, envelope: dict[str, Any]) -> None:
        event = envelope.get("event")
        data = envelope.get("data")
        if not isinstance(event, str) or not isinstance(data, dict):
            logger.warning("Discarded malformed envelope", extra={"channel": channel})
            return
        shared = self._channels.get(channel)
        if shared is None:
            return
        for handle in list(shared.handles):
            await handle.dispatch(event, data)
