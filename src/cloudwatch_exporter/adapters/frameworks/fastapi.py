"""FastAPI adapter for the exporter endpoints."""

from fastapi import APIRouter, Query, Response

from cloudwatch_exporter.adapters.frameworks.asgi import (
    HOME_PAGE,
    reload_config,
    scrape_text,
)
from cloudwatch_exporter.adapters.frameworks.query_params import _validate_namespace
from cloudwatch_exporter.core.collector import CloudWatchCollector
from cloudwatch_exporter.core.encoding.prometheus import CONTENT_TYPE
from cloudwatch_exporter.core.store import ConfigStore


def create_exporter_router(
    collector: CloudWatchCollector,
    store: ConfigStore | None = None,
) -> APIRouter:
    """Create a FastAPI router with /metrics, /-/reload and / endpoints.

    Args:
        collector: Collector producing the exposition families.
        store: Configuration store reloaded by POST /-/reload. Without one
            the reload route is not registered.

    Returns:
        APIRouter with the exporter endpoints configured.
    """
    router = APIRouter()

    @router.api_route("/metrics", methods=["GET", "POST"])
    async def get_metrics(namespace: str | None = Query(default=None)) -> Response:
        """Return a scrape in Prometheus text format.

        Args:
            namespace: Only scrape rules of this CloudWatch namespace.
        """
        body = await scrape_text(collector, _validate_namespace(namespace))
        return Response(content=body, media_type=CONTENT_TYPE)

    @router.api_route("/metrics/{subpath:path}", methods=["GET", "POST"])
    async def get_metrics_subpath(
        subpath: str, namespace: str | None = Query(default=None)
    ) -> Response:
        return await get_metrics(namespace)

    if store is not None:

        @router.post("/-/reload")
        async def post_reload() -> Response:
            """Reload the configuration from its source."""
            status, body = await reload_config(store)
            return Response(content=body, status_code=status, media_type="text/plain")

    @router.get("/")
    async def home() -> Response:
        return Response(content=HOME_PAGE, media_type="text/html")

    return router
