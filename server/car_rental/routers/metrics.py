"""Prometheus scrape endpoint for request and booking metrics."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST

from ..core.observability import get_prometheus_metrics

router = APIRouter(tags=["Observability"])


@router.get("/metrics", response_class=Response, summary="Prometheus Metrics")
async def metrics() -> Response:
    """Request latency plus quote, payment, notification and step-redirect counters."""
    return Response(content=get_prometheus_metrics(), media_type=CONTENT_TYPE_LATEST)
