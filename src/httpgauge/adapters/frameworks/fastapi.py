"""FastAPI adapter for the publication endpoint."""

from fastapi import APIRouter, Response

from httpgauge.core.encoding.prometheus import CONTENT_TYPE, render
from httpgauge.core.ports import MetricStorePort


def create_metrics_router(store: MetricStorePort, path: str = "/metrics") -> APIRouter:
    """Create a FastAPI router exposing the store.

    Lets an existing FastAPI application publish the gauges alongside its
    own routes.

    Args:
        store: Store implementing MetricStorePort.
        path: Route of the metrics resource.

    Returns:
        APIRouter with the metrics endpoint configured.
    """
    router = APIRouter()

    @router.get(path)
    async def get_metrics() -> Response:
        """Return gauges in Prometheus text format."""
        body = render(await store.snapshot())
        return Response(content=body, media_type=CONTENT_TYPE)

    return router
