"""Chat and realtime metrics exposed in the Prometheus text format."""

from .registry import MetricsRegistry, registry

__all__ = ["MetricsRegistry", "registry"]
