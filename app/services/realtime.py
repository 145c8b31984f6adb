"""Process-wide realtime wiring: transport, dispatcher and channel registry."""

from __future__ import annotations

import logging
import uuid

from fastapi import Depends
from redis.exceptions import RedisError
from starlette.requests import HTTPConnection

from pairchat.realtime import BrokerConfig, ChannelSubscriptions, RedisTransport, TransportUnavailableError

from app.config import Settings
from app.monitoring.metrics import realtime_transport_restarts_total
from app.services.fanout import FanoutDispatcher

logger = logging.getLogger(__name__)


class RealtimeHub:
    """Bundles the pieces that share one broker connection."""

    def __init__(self, transport) -> None:
        self.transport = transport
        self.dispatcher = FanoutDispatcher(transport)
        self.subscriptions = ChannelSubscriptions(transport)

    async def start(self) -> None:
        try:
            await self.transport.start()
        except (TransportUnavailableError, RedisError, OSError):
            logger.warning(
                "Realtime backend unavailable during startup; messages will be stored without live delivery",
                exc_info=logger.isEnabledFor(logging.DEBUG),
            )

    async def stop(self) -> None:
        await self.subscriptions.close()
        await self.transport.stop()


def build_realtime(settings: Settings) -> RealtimeHub:
    transport = RedisTransport(
        BrokerConfig(
            redis_url=settings.realtime_url,
            prefix=settings.realtime_namespace,
            node_id=settings.realtime_node_id or uuid.uuid4().hex,
        ),
        on_restart=lambda reason: realtime_transport_restarts_total.labels(reason).inc(),
    )
    return RealtimeHub(transport)


def get_realtime(connection: HTTPConnection) -> RealtimeHub:
    return connection.app.state.realtime


def get_dispatcher(hub: RealtimeHub = Depends(get_realtime)) -> FanoutDispatcher:
    return hub.dispatcher


def get_subscriptions(hub: RealtimeHub = Depends(get_realtime)) -> ChannelSubscriptions:
    return hub.subscriptions


__all__ = [
    "RealtimeHub",
    "build_realtime",
    "get_dispatcher",
    "get_realtime",
    "get_subscriptions",
]
