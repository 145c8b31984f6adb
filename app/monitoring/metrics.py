"""Metric definitions for chat traffic and realtime fan-out."""

from __future__ import annotations

from .registry import registry

chat_messages_total = registry.counter(
    "chat_messages_total",
    "Number of message lifecycle operations that reached the store.",
    label_names=("action",),
)

realtime_events_total = registry.counter(
    "realtime_events_total",
    "Count of realtime events published or relayed.",
    label_names=("event", "direction"),
)

realtime_publish_errors_total = registry.counter(
    "realtime_publish_errors_total",
    "Realtime publishes that failed after the store write succeeded.",
    label_names=("scope", "reason"),
)

realtime_transport_restarts_total = registry.counter(
    "realtime_transport_restarts_total",
    "Number of times the realtime transport re-attached its subscriptions.",
    label_names=("reason",),
)

realtime_connections = registry.gauge(
    "realtime_active_connections",
    "Number of active websocket connections handled locally.",
    label_names=("scope",),
)
