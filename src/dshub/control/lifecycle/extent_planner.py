"""Extent planning - disk identifier → create/extend spec.

Pure lookup-and-translate against the host's available-disk inventory.
Nothing here mutates remote state.
"""

import logging

from pydantic import BaseModel

from dshub.core.errors import DiskResolutionError
from dshub.core.interfaces import HostDatastoreSystem, ScsiDisk, VmfsCreateSpec, VmfsExtendSpec
from dshub.core.logging_schema import Component

logger = logging.getLogger(__name__)


class DiskSpec(BaseModel):
    """Planning artifact for one disk. Recomputed on every create/extend."""

    disk: str
    scsi_disk: ScsiDisk
    create_spec: VmfsCreateSpec | None = None
    extend_spec: VmfsExtendSpec | None = None


class ExtentPlanner:
    """Resolves disk identifiers against a host's available disks."""

    async def _available_disk(
        self, dss: HostDatastoreSystem, disk: str, datastore_id: str | None = None
    ) -> ScsiDisk:
        disks = await dss.query_available_disks(datastore_id)
        for candidate in disks:
            if candidate.canonical_name == disk:
                return candidate
        logger.info(
            "Disk not available for VMFS",
            extra={
                "component": Component.PLANNER,
                "disk": disk,
                "host_id": dss.host_system_id,
                "available": [d.canonical_name for d in disks],
            },
        )
        raise DiskResolutionError(disk, f"{disk} does not seem to be a disk available for VMFS")

    async def disk_spec_for_create(self, dss: HostDatastoreSystem, disk: str) -> DiskSpec:
        """Build the create spec for the initial extent.

        Raises:
            DiskResolutionError: Disk not available or no create option offered.
        """
        scsi_disk = await self._available_disk(dss, disk)
        options = await dss.query_create_options(scsi_disk.device_path)
        if not options:
            raise DiskResolutionError(
                disk, f"could not get datastore create options for disk {disk!r}"
            )
        return DiskSpec(disk=disk, scsi_disk=scsi_disk, create_spec=options[0])

    async def disk_spec_for_extend(
        self, dss: HostDatastoreSystem, datastore_id: str, disk: str
    ) -> DiskSpec:
        """Build the extend spec for adding a disk to an existing datastore.

        Raises:
            DiskResolutionError: Disk not available or no extend option offered.
        """
        scsi_disk = await self._available_disk(dss, disk, datastore_id)
        options = await dss.query_extend_options(datastore_id, scsi_disk.device_path)
        if not options:
            raise DiskResolutionError(
                disk, f"could not get datastore extend options for disk {disk!r}"
            )
        return DiskSpec(disk=disk, scsi_disk=scsi_disk, extend_spec=options[0])
