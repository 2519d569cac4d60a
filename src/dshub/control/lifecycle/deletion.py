"""Deletion converger - remove a datastore and wait until it is gone.

Two loops run back to back:

1. delete_retry: call remove until it succeeds. "Resource in use" keeps the
   loop pending (datastores mounted on several hosts stay busy for a moment
   after their dependents are gone); any other error ends it.
2. delete_wait: fetch the datastore until the gateway reports it as not
   found. Removal is not immediately visible to reads.

Configuration via DeleteRetryConfig (DELETE_RETRY_) and DeleteWaitConfig
(DELETE_WAIT_).
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from dshub.app.config import get_settings
from dshub.control.lifecycle.converge import LoopConfig, RefreshResult, converge
from dshub.core.errors import ConvergeError, ConvergeTimeoutError, DeleteFailedError
from dshub.core.interfaces import HostDatastoreSystem, RemoteGateway
from dshub.core.logging_schema import Component
from dshub.core.retryable import is_not_found, is_resource_in_use

logger = logging.getLogger(__name__)

RETRY_LOOP = "delete_retry"
WAIT_LOOP = "delete_wait"


def default_retry_config() -> LoopConfig:
    cfg = get_settings().delete_retry
    return LoopConfig(timeout=cfg.timeout, min_interval=cfg.min_interval, delay=cfg.delay)


def default_wait_config(api_timeout: float) -> LoopConfig:
    cfg = get_settings().delete_wait
    return LoopConfig(
        timeout=cfg.timeout if cfg.timeout is not None else api_timeout,
        min_interval=cfg.min_interval,
        delay=cfg.delay,
        not_found_checks=cfg.not_found_checks,
    )


class DeletionConverger:
    """Turns "remove" + "eventually invisible" into one deterministic result."""

    def __init__(
        self,
        gateway: RemoteGateway,
        retry_config: LoopConfig | None = None,
        wait_config: LoopConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._retry_config = retry_config or default_retry_config()
        self._wait_config = wait_config or default_wait_config(gateway.api_timeout)
        self._clock = clock
        self._sleep = sleep

    async def delete(self, dss: HostDatastoreSystem, datastore_id: str) -> None:
        """Remove the datastore and wait until it is no longer visible.

        Raises:
            DeleteFailedError: Either loop ended in error or timed out.
        """
        log_extra = {"component": Component.DELETE, "ds_id": datastore_id}
        logger.info("Deleting datastore", extra=log_extra)

        async def try_remove() -> RefreshResult:
            try:
                await dss.remove(datastore_id)
            except Exception as e:
                if is_resource_in_use(e):
                    return RefreshResult.pending(e)
                return RefreshResult.failed(e)
            return RefreshResult.completed()

        loop = await converge(
            self._retry_config,
            try_remove,
            name=RETRY_LOOP,
            clock=self._clock,
            sleep=self._sleep,
            log_extra=log_extra,
        )
        try:
            loop.raise_for_state()
        except (ConvergeError, ConvergeTimeoutError) as e:
            raise DeleteFailedError(f"could not delete datastore {datastore_id!r}: {e}") from e

        async def check_gone() -> RefreshResult:
            try:
                ds = await self._gateway.get_datastore(datastore_id)
            except Exception as e:
                if is_not_found(e):
                    return RefreshResult.completed()
                return RefreshResult.failed(e)
            if ds is None:
                return RefreshResult.no_result()
            return RefreshResult.pending()

        loop = await converge(
            self._wait_config,
            check_gone,
            name=WAIT_LOOP,
            clock=self._clock,
            sleep=self._sleep,
            log_extra=log_extra,
        )
        try:
            loop.raise_for_state()
        except (ConvergeError, ConvergeTimeoutError) as e:
            raise DeleteFailedError(
                f"error waiting for datastore {datastore_id!r} to delete: {e}"
            ) from e
