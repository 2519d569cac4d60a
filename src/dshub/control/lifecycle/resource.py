"""VMFS datastore resource - entry point for the lifecycle operations.

Wires the lifecycle components to one gateway. Every operation runs under
its own trace id, logs start/success/failure and records operation metrics.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from dshub.app.logging import begin_operation, bind_datastore, end_operation
from dshub.app.metrics.collector import DATASTORE_OPERATION_DURATION, DATASTORE_OPERATION_TOTAL
from dshub.control.lifecycle.calls import load_host_datastore_system
from dshub.control.lifecycle.deletion import DeletionConverger
from dshub.control.lifecycle.extent_planner import ExtentPlanner
from dshub.control.lifecycle.importer import ImportResolver
from dshub.control.lifecycle.provisioning import ProvisioningPipeline
from dshub.control.lifecycle.reader import ReconciliationReader, fetch_datastore
from dshub.control.lifecycle.updater import UpdateDiffer
from dshub.core.domain import ResourceOperation
from dshub.core.interfaces import RemoteGateway
from dshub.core.logging_schema import Component, LogEvent
from dshub.core.models import DatastoreConfig, DatastoreState
from dshub.core.retryable import classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _as_config(config: DatastoreConfig | dict[str, Any]) -> DatastoreConfig:
    if isinstance(config, DatastoreConfig):
        return config
    return DatastoreConfig.load(config)


class VmfsDatastoreResource:
    """create / read / update / delete / import of one VMFS datastore.

    Usage:
        async with GatewayClient(GatewayConnection.from_settings()) as gw:
            resource = VmfsDatastoreResource(gw)
            state = await resource.create({"name": "ds1", ...})
    """

    def __init__(
        self,
        gateway: RemoteGateway,
        *,
        planner: ExtentPlanner | None = None,
        deletion: DeletionConverger | None = None,
    ) -> None:
        self._gateway = gateway
        planner = planner or ExtentPlanner()
        self._reader = ReconciliationReader(gateway)
        self._pipeline = ProvisioningPipeline(gateway, planner, self._reader)
        self._differ = UpdateDiffer(gateway, planner, self._reader)
        self._deletion = deletion or DeletionConverger(gateway)
        self._importer = ImportResolver(gateway)

    async def create(self, config: DatastoreConfig | dict[str, Any]) -> DatastoreState:
        """Provision a new datastore and return its observed state."""
        cfg = _as_config(config)

        async def run() -> DatastoreState:
            dss = await load_host_datastore_system(self._gateway, cfg.host_system_id)
            return await self._pipeline.provision(dss, cfg)

        return await self._run(
            ResourceOperation.CREATE, Component.PROVISION, run, host_id=cfg.host_system_id
        )

    async def read(self, datastore_id: str, host_system_id: str) -> DatastoreState:
        return await self._run(
            ResourceOperation.READ,
            Component.READER,
            lambda: self._reader.read(datastore_id, host_system_id),
            ds_id=datastore_id,
        )

    async def update(
        self, current: DatastoreState, desired: DatastoreConfig | dict[str, Any]
    ) -> DatastoreState:
        """Reconcile an existing datastore towards desired."""
        cfg = _as_config(desired)
        return await self._run(
            ResourceOperation.UPDATE,
            Component.UPDATE,
            lambda: self._differ.update(current, cfg),
            ds_id=current.id,
        )

    async def delete(self, state: DatastoreState) -> None:
        """Remove the datastore and wait until it is gone."""

        async def run() -> None:
            dss = await load_host_datastore_system(self._gateway, state.host_system_id)
            await fetch_datastore(self._gateway, state.id)
            await self._deletion.delete(dss, state.id)

        await self._run(ResourceOperation.DELETE, Component.DELETE, run, ds_id=state.id)

    async def import_datastore(self, raw_id: str) -> DatastoreState:
        """Adopt an existing datastore given DATASTOREID:HOSTID."""

        async def run() -> DatastoreState:
            imported = await self._importer.resolve(raw_id)
            bind_datastore(imported.id)
            return await self._reader.read(imported.id, imported.host_system_id)

        return await self._run(ResourceOperation.IMPORT, Component.IMPORT, run, import_id=raw_id)

    async def _run(
        self,
        operation: ResourceOperation,
        component: Component,
        action: Callable[[], Awaitable[T]],
        **fields: Any,
    ) -> T:
        begin_operation(operation.value, ds_id=fields.get("ds_id"))
        extra = {"component": component, "operation": operation.value, **fields}
        start = time.monotonic()
        logger.info(
            "Datastore %s started",
            operation.value,
            extra={**extra, "event": LogEvent.OPERATION_STARTED},
        )
        try:
            result = await action()
        except Exception as e:
            DATASTORE_OPERATION_TOTAL.labels(operation=operation.value, status="error").inc()
            logger.error(
                "Datastore %s failed: %s",
                operation.value,
                e,
                extra={
                    **extra,
                    "event": LogEvent.OPERATION_FAILED,
                    "error_class": classify_error(e),
                    "error_type": type(e).__name__,
                },
            )
            raise
        else:
            DATASTORE_OPERATION_TOTAL.labels(operation=operation.value, status="success").inc()
            logger.info(
                "Datastore %s complete",
                operation.value,
                extra={**extra, "event": LogEvent.OPERATION_SUCCESS},
            )
            return result
        finally:
            DATASTORE_OPERATION_DURATION.labels(operation=operation.value).observe(
                time.monotonic() - start
            )
            end_operation()
