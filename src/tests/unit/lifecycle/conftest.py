"""Fixtures for lifecycle unit tests."""

from unittest.mock import AsyncMock

import pytest

from dshub.core.interfaces import (
    DatastoreProperties,
    DatastoreRef,
    DiskPartition,
    HostDatastoreSystem,
    HostMount,
    RemoteGateway,
    RemoteSummary,
    ScsiDisk,
    VmfsCreateSpec,
    VmfsExtendSpec,
    VmfsExtent,
)

DS_ID = "datastore-101"
HOST_ID = "host-7"
DC_PATH = "/dc1"


class FakeClock:
    """Monotonic clock advanced only by sleep()."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def scsi_disk(name: str) -> ScsiDisk:
    return ScsiDisk(canonical_name=name, device_path=f"/vmfs/devices/disks/{name}")


def properties(
    disks: list[str],
    name: str = "ds1",
    type: str = "VMFS",
    hosts: tuple[str, ...] = (HOST_ID,),
) -> DatastoreProperties:
    return DatastoreProperties(
        summary=RemoteSummary(
            name=name,
            type=type,
            url=f"ds:///vmfs/volumes/{DS_ID}/",
            capacity=10 * 1024 * 1024 * 1024,
            free_space=4 * 1024 * 1024 * 1024,
            uncommitted=1024 * 1024,
        ),
        extents=[VmfsExtent(disk_name=d) for d in disks],
        host=[HostMount(key=h) for h in hosts],
    )


class FakeInventory:
    """Remote datastore as seen through the mocks; mutated by create/extend/move/rename."""

    def __init__(self) -> None:
        self.name = "ds1"
        self.folder = ""
        self.disks: list[str] = []
        self.type = "VMFS"
        self.hosts: tuple[str, ...] = (HOST_ID,)

    def ref(self) -> DatastoreRef:
        path = "/".join(p for p in (DC_PATH, "datastore", self.folder, self.name) if p)
        return DatastoreRef(id=DS_ID, name=self.name, inventory_path=path)

    def props(self) -> DatastoreProperties:
        return properties(self.disks, self.name, self.type, self.hosts)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def inventory() -> FakeInventory:
    return FakeInventory()


@pytest.fixture
def mock_dss(inventory: FakeInventory) -> AsyncMock:
    """HostDatastoreSystem mock offering naa.1 .. naa.4."""
    dss = AsyncMock(spec=HostDatastoreSystem)
    dss.host_system_id = HOST_ID
    dss.query_available_disks = AsyncMock(
        return_value=[scsi_disk(f"naa.{i}") for i in range(1, 5)]
    )

    async def create_options(device_path: str) -> list[VmfsCreateSpec]:
        name = device_path.rsplit("/", 1)[-1]
        return [VmfsCreateSpec(device_path=device_path, extent=DiskPartition(disk_name=name))]

    async def extend_options(datastore_id: str, device_path: str) -> list[VmfsExtendSpec]:
        name = device_path.rsplit("/", 1)[-1]
        return [VmfsExtendSpec(device_path=device_path, extent=DiskPartition(disk_name=name))]

    async def create(spec: VmfsCreateSpec) -> DatastoreRef:
        inventory.name = spec.volume_name
        inventory.disks = [spec.extent.disk_name]
        return inventory.ref()

    async def extend(datastore_id: str, spec: VmfsExtendSpec) -> DatastoreRef:
        inventory.disks.append(spec.extent.disk_name)
        return inventory.ref()

    dss.query_create_options = AsyncMock(side_effect=create_options)
    dss.query_extend_options = AsyncMock(side_effect=extend_options)
    dss.create_vmfs_datastore = AsyncMock(side_effect=create)
    dss.extend_vmfs_datastore = AsyncMock(side_effect=extend)
    dss.remove = AsyncMock(return_value=None)
    return dss


@pytest.fixture
def mock_gateway(mock_dss: AsyncMock, inventory: FakeInventory) -> AsyncMock:
    """RemoteGateway mock backed by FakeInventory."""
    gw = AsyncMock(spec=RemoteGateway)
    gw.api_timeout = 300.0
    gw.host_datastore_system = AsyncMock(return_value=mock_dss)

    async def get_datastore(datastore_id: str) -> DatastoreRef:
        return inventory.ref()

    async def datastore_properties(datastore_id: str) -> DatastoreProperties:
        return inventory.props()

    async def rename(datastore_id: str, name: str) -> None:
        inventory.name = name

    async def move(datastore_id: str, folder: str, host_system_id: str | None = None) -> None:
        inventory.folder = folder

    gw.get_datastore = AsyncMock(side_effect=get_datastore)
    gw.datastore_properties = AsyncMock(side_effect=datastore_properties)
    gw.rename = AsyncMock(side_effect=rename)
    gw.move_to_folder = AsyncMock(side_effect=move)
    return gw
