"""Gateway call helpers shared by the lifecycle components."""

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from dshub.app.metrics.collector import GATEWAY_CALL_DURATION
from dshub.core.errors import GatewayError
from dshub.core.interfaces import HostDatastoreSystem, RemoteGateway

T = TypeVar("T")


async def timed_call(call: str, coro: Awaitable[T], timeout: float) -> T:
    """Await a gateway call under a timeout.

    Raises:
        GatewayError: The call did not finish within timeout seconds.
    """
    start = time.monotonic()
    try:
        return await asyncio.wait_for(coro, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise GatewayError(f"{call} timed out after {timeout:g}s") from e
    finally:
        GATEWAY_CALL_DURATION.labels(call=call).observe(time.monotonic() - start)


async def load_host_datastore_system(
    gateway: RemoteGateway, host_system_id: str
) -> HostDatastoreSystem:
    """Look up a host's datastore system.

    Raises:
        GatewayError: Lookup failed; the error keeps its classification.
    """
    try:
        return await gateway.host_datastore_system(host_system_id)
    except GatewayError as e:
        raise type(e)(f"error loading host datastore system for {host_system_id!r}: {e}") from e
