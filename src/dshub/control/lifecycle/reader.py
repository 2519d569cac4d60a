"""Reconciliation reader - remote datastore → DatastoreState.

Every mutating operation ends with a read; the projection is never cached.
"""

import logging

from dshub.core.errors import DatastoreNotFoundError, ObjectNotFoundError
from dshub.core.interfaces import DatastoreProperties, DatastoreRef, RemoteGateway
from dshub.core.logging_schema import Component
from dshub.core.models import DatastoreState, DatastoreSummary
from dshub.core.paths import DATASTORE_ROOT, normalize_folder_path

logger = logging.getLogger(__name__)


def flatten_summary(props: DatastoreProperties) -> DatastoreSummary:
    """Project the remote summary, converting sizes to MB."""
    s = props.summary
    return DatastoreSummary(
        type=s.type,
        accessible=s.accessible,
        capacity=DatastoreSummary.byte_to_mb(s.capacity),
        free_space=DatastoreSummary.byte_to_mb(s.free_space),
        uncommitted_space=DatastoreSummary.byte_to_mb(s.uncommitted),
        maintenance_mode=s.maintenance_mode,
        multiple_host_access=s.multiple_host_access,
        url=s.url,
    )


async def fetch_datastore(gateway: RemoteGateway, datastore_id: str) -> DatastoreRef:
    """Fetch a datastore, turning absence into DatastoreNotFoundError."""
    try:
        ds = await gateway.get_datastore(datastore_id)
    except ObjectNotFoundError as e:
        raise DatastoreNotFoundError(datastore_id, e) from e
    if ds is None:
        raise DatastoreNotFoundError(datastore_id, "empty response")
    return ds


class ReconciliationReader:
    """Projects remote datastore state into DatastoreState."""

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

    async def read(self, datastore_id: str, host_system_id: str) -> DatastoreState:
        """Read the datastore.

        Raises:
            DatastoreNotFoundError: Datastore does not exist.
            InventoryPathError: Inventory path is not below the datastore root.
            GatewayError: Property fetch failed.
        """
        ds = await fetch_datastore(self._gateway, datastore_id)
        try:
            props = await self._gateway.datastore_properties(datastore_id)
        except ObjectNotFoundError as e:
            raise DatastoreNotFoundError(datastore_id, e) from e

        folder = DATASTORE_ROOT.split_relative_folder(ds.inventory_path)
        disks = [extent.disk_name for extent in props.extents]

        logger.debug(
            "Read datastore",
            extra={
                "component": Component.READER,
                "ds_id": datastore_id,
                "folder": folder,
                "disks": disks,
            },
        )
        return DatastoreState(
            id=datastore_id,
            host_system_id=host_system_id,
            name=props.summary.name,
            folder=normalize_folder_path(folder),
            disks=disks,
            summary=flatten_summary(props),
        )
