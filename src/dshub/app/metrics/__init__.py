"""Prometheus metrics for datastore lifecycle operations."""

import logging

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest, start_http_server

logger = logging.getLogger(__name__)


def setup_metrics(port: int, addr: str = "0.0.0.0") -> None:
    """Expose the default registry on an HTTP endpoint (background thread)."""
    start_http_server(port, addr=addr)
    logger.info("Metrics endpoint listening on %s:%d", addr, port)


def get_metrics_payload() -> tuple[bytes, str]:
    """Render current metrics in Prometheus text format.

    Returns:
        (body, content type) for embedding into another HTTP surface.
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
