"""Provisioning pipeline - create a datastore with compensating rollback.

Steps:
1. create the datastore on the first disk (failure: nothing to undo)
2. move it into the configured folder
3. extend it with every remaining disk, in order
4. read it back

Once step 1 succeeded, every failing step triggers exactly one
compensating removal of the datastore. The outcome of that removal decides
the error tier:
- removal ok → ProvisioningError(rolled_back=True)
- removal failed → DanglingResourceError (manual cleanup required)
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from dshub.app.logging import bind_datastore
from dshub.app.metrics.collector import COMPENSATION_TOTAL
from dshub.control.lifecycle.calls import timed_call
from dshub.control.lifecycle.extent_planner import ExtentPlanner
from dshub.control.lifecycle.reader import ReconciliationReader
from dshub.core.domain import ProvisionStep, StepOutcome
from dshub.core.errors import DanglingResourceError, ProvisioningError
from dshub.core.interfaces import HostDatastoreSystem, RemoteGateway
from dshub.core.logging_schema import Component, LogEvent
from dshub.core.models import DatastoreConfig, DatastoreState
from dshub.core.paths import path_is_empty

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult:
    """Outcome of one provisioning step after the datastore exists.

    Attributes:
        step: Which step ran
        outcome: success, rolled_back or dangling
        error: Step failure (None on success)
        rollback_error: Compensating removal failure (dangling only)
    """

    step: ProvisionStep
    outcome: StepOutcome
    error: Exception | None = None
    rollback_error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.outcome == StepOutcome.SUCCESS

    def raise_for_outcome(self, datastore_id: str, context: str) -> None:
        """Raise the error matching the outcome tier.

        Args:
            datastore_id: The created datastore
            context: What went wrong, e.g. 'error extending datastore with disk "x"'
        """
        if self.outcome == StepOutcome.DANGLING:
            raise DanglingResourceError(
                datastore_id, context, self.error, self.rollback_error
            ) from self.error
        if self.outcome == StepOutcome.ROLLED_BACK:
            raise ProvisioningError(f"{context}: {self.error}", rolled_back=True) from self.error


class ProvisioningPipeline:
    """Drives datastore creation."""

    def __init__(
        self,
        gateway: RemoteGateway,
        planner: ExtentPlanner | None = None,
        reader: ReconciliationReader | None = None,
    ) -> None:
        self._gateway = gateway
        self._planner = planner or ExtentPlanner()
        self._reader = reader or ReconciliationReader(gateway)

    async def provision(self, dss: HostDatastoreSystem, config: DatastoreConfig) -> DatastoreState:
        """Create the datastore described by config.

        Raises:
            DiskResolutionError: First disk cannot be used (nothing created).
            ProvisioningError: A step failed (rolled_back tells if anything was undone).
            DanglingResourceError: A step failed and the datastore could not be removed.
        """
        datastore_id = await self._create(dss, config)
        ctx = {"component": Component.PROVISION, "ds_id": datastore_id}

        if not path_is_empty(config.folder):
            folder = config.folder
            result = await self._run_step(
                dss,
                datastore_id,
                ProvisionStep.MOVE,
                lambda: timed_call(
                    "move",
                    self._gateway.move_to_folder(
                        datastore_id, folder, host_system_id=config.host_system_id
                    ),
                    self._gateway.api_timeout,
                ),
            )
            result.raise_for_outcome(
                datastore_id, f"could not move datastore to folder {folder!r}"
            )
            logger.info(
                "Moved datastore to folder",
                extra={**ctx, "event": LogEvent.DATASTORE_MOVED, "folder": folder},
            )

        for disk in config.disks[1:]:
            await self._extend(dss, datastore_id, disk)

        state: DatastoreState | None = None

        async def read() -> None:
            nonlocal state
            state = await self._reader.read(datastore_id, config.host_system_id)

        result = await self._run_step(dss, datastore_id, ProvisionStep.READ, read)
        result.raise_for_outcome(
            datastore_id,
            "after creating the datastore, there was an error fetching its properties",
        )
        return state

    async def _create(self, dss: HostDatastoreSystem, config: DatastoreConfig) -> str:
        disk = config.disks[0]
        disk_spec = await self._planner.disk_spec_for_create(dss, disk)
        spec = disk_spec.create_spec.with_volume_name(config.name)
        try:
            ds = await timed_call(
                "create",
                dss.create_vmfs_datastore(spec),
                self._gateway.api_timeout,
            )
        except Exception as e:
            raise ProvisioningError(f"error creating datastore with disk {disk}: {e}") from e

        bind_datastore(ds.id)
        logger.info(
            "Created datastore",
            extra={
                "component": Component.PROVISION,
                "event": LogEvent.DATASTORE_CREATED,
                "ds_id": ds.id,
                "host_id": config.host_system_id,
                "disk": disk,
            },
        )
        return ds.id

    async def _extend(self, dss: HostDatastoreSystem, datastore_id: str, disk: str) -> None:
        disk_spec = None

        async def plan() -> None:
            nonlocal disk_spec
            disk_spec = await self._planner.disk_spec_for_extend(dss, datastore_id, disk)

        result = await self._run_step(dss, datastore_id, ProvisionStep.EXTEND_SPEC, plan)
        result.raise_for_outcome(
            datastore_id, f"error fetching datastore extend spec for disk {disk!r}"
        )

        result = await self._run_step(
            dss,
            datastore_id,
            ProvisionStep.EXTEND,
            lambda: timed_call(
                "extend",
                dss.extend_vmfs_datastore(datastore_id, disk_spec.extend_spec),
                self._gateway.api_timeout,
            ),
        )
        result.raise_for_outcome(datastore_id, f"error extending datastore with disk {disk!r}")
        logger.info(
            "Extended datastore",
            extra={
                "component": Component.PROVISION,
                "event": LogEvent.DATASTORE_EXTENDED,
                "ds_id": datastore_id,
                "disk": disk,
            },
        )

    async def _run_step(
        self,
        dss: HostDatastoreSystem,
        datastore_id: str,
        step: ProvisionStep,
        action: Callable[[], Awaitable[T]],
    ) -> StepResult:
        """Run a step; on failure remove the datastore exactly once."""
        try:
            await action()
        except Exception as e:
            return await self._compensate(dss, datastore_id, step, e)
        return StepResult(step=step, outcome=StepOutcome.SUCCESS)

    async def _compensate(
        self,
        dss: HostDatastoreSystem,
        datastore_id: str,
        step: ProvisionStep,
        error: Exception,
    ) -> StepResult:
        ctx = {
            "component": Component.PROVISION,
            "ds_id": datastore_id,
            "step": step.value,
            "error": str(error),
        }
        logger.warning(
            "Provisioning step failed, removing datastore",
            extra={**ctx, "event": LogEvent.ROLLBACK_STARTED},
        )
        try:
            await timed_call("remove", dss.remove(datastore_id), self._gateway.api_timeout)
        except Exception as rem_err:
            COMPENSATION_TOTAL.labels(step=step.value, outcome=StepOutcome.DANGLING.value).inc()
            logger.error(
                "Compensating removal failed, datastore is dangling",
                extra={
                    **ctx,
                    "event": LogEvent.ROLLBACK_FAILED,
                    "rollback_error": str(rem_err),
                },
            )
            return StepResult(
                step=step,
                outcome=StepOutcome.DANGLING,
                error=error,
                rollback_error=rem_err,
            )

        COMPENSATION_TOTAL.labels(step=step.value, outcome=StepOutcome.ROLLED_BACK.value).inc()
        logger.info(
            "Compensating removal complete",
            extra={**ctx, "event": LogEvent.ROLLBACK_COMPLETE},
        )
        return StepResult(step=step, outcome=StepOutcome.ROLLED_BACK, error=error)
