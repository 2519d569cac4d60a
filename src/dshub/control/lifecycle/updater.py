"""Update differ - reconcile name, folder and extents of a datastore.

Order of checks:
1. host_system_id change → ReplacementRequiredError (no remote call)
2. extent removal → ShrinkNotSupportedError (no remote call)
3. name drift → rename
4. folder drift → move
5. added disks → extend, one by one, in configuration order

Any failure aborts the update. Extents added earlier in the same pass stay;
unlike creation, updates are not rolled back.
"""

import logging

from pydantic import BaseModel

from dshub.control.lifecycle.calls import load_host_datastore_system, timed_call
from dshub.control.lifecycle.extent_planner import ExtentPlanner
from dshub.control.lifecycle.reader import ReconciliationReader, fetch_datastore
from dshub.core.errors import GatewayError, ReplacementRequiredError, ShrinkNotSupportedError
from dshub.core.interfaces import RemoteGateway
from dshub.core.logging_schema import Component, LogEvent
from dshub.core.models import DatastoreConfig, DatastoreState

logger = logging.getLogger(__name__)


class ExtentDiff(BaseModel):
    """Extent delta between observed and desired disk lists."""

    added: list[str]
    removed: list[str]

    model_config = {"frozen": True}

    @property
    def unchanged(self) -> bool:
        return not self.added and not self.removed


def diff_extents(observed: list[str], desired: list[str]) -> ExtentDiff:
    """Compute added/removed disks, keeping list order."""
    observed_set = set(observed)
    desired_set = set(desired)
    return ExtentDiff(
        added=[d for d in desired if d not in observed_set],
        removed=[d for d in observed if d not in desired_set],
    )


class UpdateDiffer:
    """Applies desired configuration to an existing datastore."""

    def __init__(
        self,
        gateway: RemoteGateway,
        planner: ExtentPlanner | None = None,
        reader: ReconciliationReader | None = None,
    ) -> None:
        self._gateway = gateway
        self._planner = planner or ExtentPlanner()
        self._reader = reader or ReconciliationReader(gateway)

    async def update(self, current: DatastoreState, desired: DatastoreConfig) -> DatastoreState:
        """Reconcile current towards desired and read the result back.

        Raises:
            ReplacementRequiredError: host_system_id changed.
            ShrinkNotSupportedError: A recorded disk is missing from desired.
            DatastoreNotFoundError: Datastore is gone.
            DiskResolutionError: An added disk cannot be used.
            GatewayError: rename, move or extend failed.
        """
        ds_id = current.id
        ctx = {"component": Component.UPDATE, "ds_id": ds_id}

        if desired.host_system_id != current.host_system_id:
            raise ReplacementRequiredError(ds_id, current.host_system_id, desired.host_system_id)

        diff = diff_extents(current.disks, desired.disks)
        if diff.removed:
            logger.warning(
                "Rejected extent removal",
                extra={**ctx, "event": LogEvent.SHRINK_REJECTED, "removed": diff.removed},
            )
            raise ShrinkNotSupportedError(diff.removed[0])

        await fetch_datastore(self._gateway, ds_id)

        if desired.name != current.name:
            await self._gateway.rename(ds_id, desired.name)
            logger.info(
                "Renamed datastore",
                extra={**ctx, "event": LogEvent.DATASTORE_RENAMED, "name": desired.name},
            )

        if desired.folder != current.folder:
            try:
                await self._gateway.move_to_folder(ds_id, desired.folder)
            except GatewayError as e:
                raise type(e)(
                    f"could not move datastore to folder {desired.folder!r}: {e}"
                ) from e
            logger.info(
                "Moved datastore to folder",
                extra={**ctx, "event": LogEvent.DATASTORE_MOVED, "folder": desired.folder},
            )

        if diff.added:
            dss = await load_host_datastore_system(self._gateway, current.host_system_id)
            for disk in diff.added:
                disk_spec = await self._planner.disk_spec_for_extend(dss, ds_id, disk)
                await timed_call(
                    "extend",
                    dss.extend_vmfs_datastore(ds_id, disk_spec.extend_spec),
                    self._gateway.api_timeout,
                )
                logger.info(
                    "Extended datastore",
                    extra={**ctx, "event": LogEvent.DATASTORE_EXTENDED, "disk": disk},
                )

        return await self._reader.read(ds_id, current.host_system_id)
