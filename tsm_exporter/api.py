"""HTTP endpoints serving per-target TSM metrics."""

from typing import Optional
import logging
import time

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest
from prometheus_client import CollectorRegistry as PrometheusRegistry

from .collectors.base import QueryExecutor
from .collectors.registry import CollectorRegistry, TSMCollector, default_registry
from .config.models import CollectorOptions, ExporterConfig

LANDING_PAGE = """<html>
<head><title>TSM Exporter</title></head>
<body>
<h1>TSM Exporter</h1>
<p><a href="/tsm">TSM Metrics</a></p>
<p><a href="/metrics">Exporter Metrics</a></p>
</body>
</html>
"""


def create_app(
    config: ExporterConfig,
    executor: QueryExecutor,
    registry: Optional[CollectorRegistry] = None,
    options: Optional[CollectorOptions] = None,
    logger: Optional[logging.Logger] = None
) -> FastAPI:
    """
    Build the exporter application.

    Args:
        config: Loaded target configuration
        executor: Query executor shared by every collector
        registry: Collector registry, the built-in collectors when None
        options: Process-wide collector options
        logger: Logger instance

    Returns:
        FastAPI: Application exposing /, /tsm and /metrics
    """
    registry = registry or default_registry()
    options = options or CollectorOptions()
    logger = logger or logging.getLogger("tsm_exporter")

    app = FastAPI(title="TSM Exporter")

    @app.get("/", response_class=HTMLResponse)
    async def index():
        return LANDING_PAGE

    @app.get("/tsm")
    async def tsm_metrics(target: Optional[str] = None):
        if not target:
            return PlainTextResponse("'target' parameter must be specified", status_code=400)

        tsm_target = config.targets.get(target)
        if tsm_target is None:
            return PlainTextResponse(f"Unknown target {target}", status_code=404)

        logger.debug("Collecting target", extra={"target": target})
        start = time.monotonic()

        collectors = registry.build(tsm_target, executor, options, logger)
        tsm_collector = TSMCollector(collectors, logger)
        await tsm_collector.gather()

        # A fresh registry per request so no series outlives the scrape
        prometheus_registry = PrometheusRegistry(auto_describe=False)
        prometheus_registry.register(tsm_collector)

        logger.debug(
            f"Collected target in {time.monotonic() - start:.3f}s",
            extra={"target": target}
        )
        return Response(generate_latest(prometheus_registry), media_type=CONTENT_TYPE_LATEST)

    @app.get("/metrics")
    async def exporter_metrics():
        return Response(generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)

    return app
