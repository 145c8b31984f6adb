"""Prometheus text exposition of the in-process counters."""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from app.monitoring import metrics as _metrics  # noqa: F401  registers the chat metrics
from app.monitoring.registry import registry

router = APIRouter(tags=["metrics"])

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4"


@router.get("/metrics", response_class=PlainTextResponse)
def export_metrics() -> PlainTextResponse:
    return PlainTextResponse(registry.render(), media_type=PROMETHEUS_CONTENT_TYPE)
