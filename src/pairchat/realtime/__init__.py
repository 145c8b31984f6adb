"""Realtime helpers for distributed websocket fan-out."""

from .subscriptions import ANY_EVENT, ChannelHandle, ChannelSubscriptions
from .transport import (
    BrokerConfig,
    RedisTransport,
    Subscription,
    TransportUnavailableError,
)

__all__ = [
    "ANY_EVENT",
    "BrokerConfig",
    "ChannelHandle",
    "ChannelSubscriptions",
    "RedisTransport",
    "Subscription",
    "TransportUnavailableError",
]
