"""
Health check routes.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Request
from fastapi.responses import Response

from typed_tasks import __version__
from typed_tasks.observability.metrics import get_metrics
from typed_tasks.types.api import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Report service status and the queues this app handles.",
)
async def health_check(request: Request) -> HealthResponse:
    return HealthResponse(
        status="healthy",
        version=__version__,
        queues=list(getattr(request.app.state, "queue_names", [])),
        timestamp=datetime.now(UTC),
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics() -> Response:
    """
    Expose Prometheus metrics.

    Returns:
        Prometheus-formatted metrics.
    """
    metrics_collector = get_metrics()
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
