"""Process bootstrap for the datastore lifecycle engine.

Usage:
    async with open_resource() as resource:
        state = await resource.create(config)
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from dshub.app.config import get_settings
from dshub.app.logging import setup_logging
from dshub.app.metrics import setup_metrics
from dshub.control.lifecycle import VmfsDatastoreResource
from dshub.core.logging_schema import LogEvent
from dshub.gateway.client import GatewayClient, GatewayConnection

logger = logging.getLogger(__name__)


def bootstrap() -> None:
    """Configure logging and, if enabled, the metrics endpoint."""
    settings = get_settings()
    setup_logging()
    if settings.metrics.enabled:
        setup_metrics(settings.metrics.port, settings.metrics.addr)
    logger.info(
        "Datastore lifecycle engine ready",
        extra={"event": LogEvent.APP_STARTED, "gateway": settings.gateway.endpoint},
    )


@asynccontextmanager
async def open_resource(
    connection: GatewayConnection | None = None,
) -> AsyncIterator[VmfsDatastoreResource]:
    """Yield a VmfsDatastoreResource bound to a gateway client; close it afterwards."""
    client = GatewayClient(connection or GatewayConnection.from_settings())
    try:
        yield VmfsDatastoreResource(client)
    finally:
        await client.close()
        logger.info("Gateway client closed", extra={"event": LogEvent.APP_STOPPED})
