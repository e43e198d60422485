"""Prometheus-compatible metrics endpoint."""

from fastapi import APIRouter, Response

from app.monitoring import metrics  # noqa: F401  registers the metric definitions
from app.monitoring.registry import registry


router = APIRouter(tags=["metrics"])


@router.get("/metrics", response_class=Response)
def export_metrics() -> Response:
    """Render every registered counter in the Prometheus text format."""

    return Response(content=registry.render(), media_type="text/plain; version=0.0.4")
