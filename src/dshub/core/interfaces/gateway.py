"""Remote gateway interface for the datastore lifecycle engine.

This is the only seam through which the lifecycle engine talks to the
storage-management endpoint. Implementations:
- GatewayClient: httpx client for the storage-management HTTP API
- AsyncMock(spec=RemoteGateway): scripted fakes in tests

Error contract: every method raises a GatewayError subclass on failure
(ObjectNotFoundError, ResourceInUseError, or plain GatewayError).
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

# =============================================================================
# Inventory models
# =============================================================================


class DatastoreRef(BaseModel):
    """Reference to a datastore managed object."""

    id: str
    name: str = ""
    inventory_path: str = ""

    model_config = {"frozen": True}


class ScsiDisk(BaseModel):
    """SCSI disk reported as available for VMFS by a host."""

    canonical_name: str  # e.g. naa.600508b1001c3a...
    device_path: str  # e.g. /vmfs/devices/disks/naa.600508b1001c3a...
    display_name: str = ""

    model_config = {"frozen": True}


class DiskPartition(BaseModel):
    """Partition layout chosen by the host for a new extent."""

    disk_name: str
    partition: int = 1

    model_config = {"frozen": True}


class VmfsCreateSpec(BaseModel):
    """Specification for creating a VMFS datastore on one disk."""

    device_path: str
    volume_name: str = ""
    major_version: int | None = None
    extent: DiskPartition

    def with_volume_name(self, name: str) -> "VmfsCreateSpec":
        return self.model_copy(update={"volume_name": name})


class VmfsExtendSpec(BaseModel):
    """Specification for adding one disk as an extent to a VMFS datastore."""

    device_path: str
    extent: DiskPartition


# =============================================================================
# Properties models
# =============================================================================


class VmfsExtent(BaseModel):
    """One extent of a VMFS volume."""

    disk_name: str
    partition: int = 1

    model_config = {"frozen": True}


class HostMount(BaseModel):
    """Host mount entry of a datastore."""

    key: str  # host system ID
    mounted: bool = True
    accessible: bool = True

    model_config = {"frozen": True}


class RemoteSummary(BaseModel):
    """Datastore summary as reported remotely (sizes in bytes)."""

    name: str
    type: str
    url: str = ""
    accessible: bool = True
    capacity: int = 0
    free_space: int = 0
    uncommitted: int = 0
    maintenance_mode: str = "normal"
    multiple_host_access: bool = False

    model_config = {"frozen": True}


class DatastoreProperties(BaseModel):
    """Properties of a datastore.

    extents is only populated for VMFS datastores (type-specific info).
    """

    summary: RemoteSummary
    extents: list[VmfsExtent] = Field(default_factory=list)
    host: list[HostMount] = Field(default_factory=list)


# =============================================================================
# Interfaces
# =============================================================================


class HostDatastoreSystem(ABC):
    """Datastore-management context of one host system."""

    host_system_id: str

    @abstractmethod
    async def query_available_disks(self, datastore_id: str | None = None) -> list[ScsiDisk]:
        """List disks usable for a new VMFS datastore, or for extending one.

        Args:
            datastore_id: When set, list disks usable to extend this datastore.
        """
        ...

    @abstractmethod
    async def query_create_options(self, device_path: str) -> list[VmfsCreateSpec]:
        """Query VMFS create options for a disk (best option first)."""
        ...

    @abstractmethod
    async def query_extend_options(
        self, datastore_id: str, device_path: str
    ) -> list[VmfsExtendSpec]:
        """Query VMFS extend options for a disk (best option first)."""
        ...

    @abstractmethod
    async def create_vmfs_datastore(self, spec: VmfsCreateSpec) -> DatastoreRef:
        """Create a VMFS datastore."""
        ...

    @abstractmethod
    async def extend_vmfs_datastore(
        self, datastore_id: str, spec: VmfsExtendSpec
    ) -> DatastoreRef:
        """Add an extent to a VMFS datastore."""
        ...

    @abstractmethod
    async def remove(self, datastore_id: str) -> None:
        """Remove a datastore from the host.

        Raises:
            ResourceInUseError: If the datastore is still busy.
        """
        ...


class RemoteGateway(ABC):
    """Storage-management endpoint."""

    api_timeout: float

    @abstractmethod
    async def host_datastore_system(self, host_system_id: str) -> HostDatastoreSystem:
        """Look up the datastore-management context of a host."""
        ...

    @abstractmethod
    async def get_datastore(self, datastore_id: str) -> DatastoreRef | None:
        """Fetch a datastore by ID.

        Raises:
            ObjectNotFoundError: If the datastore does not exist.

        Returns:
            The reference, or None if the endpoint answered without a body.
        """
        ...

    @abstractmethod
    async def datastore_properties(self, datastore_id: str) -> DatastoreProperties:
        """Fetch summary, extents and host mounts of a datastore."""
        ...

    @abstractmethod
    async def rename(self, datastore_id: str, name: str) -> None:
        """Rename a managed object."""
        ...

    @abstractmethod
    async def move_to_folder(
        self,
        datastore_id: str,
        folder: str,
        host_system_id: str | None = None,
    ) -> None:
        """Move a datastore into a folder.

        Args:
            datastore_id: Datastore to move.
            folder: Folder path relative to the datacenter's datastore root.
            host_system_id: Resolve the datacenter through this host instead
                of the datastore's current location.
        """
        ...
