"""Core interfaces for the datastore lifecycle engine."""

from dshub.core.interfaces.gateway import (
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

__all__ = [
    # Gateway interfaces
    "RemoteGateway",
    "HostDatastoreSystem",
    # Inventory models
    "DatastoreRef",
    "ScsiDisk",
    "DiskPartition",
    "VmfsCreateSpec",
    "VmfsExtendSpec",
    # Properties models
    "DatastoreProperties",
    "RemoteSummary",
    "VmfsExtent",
    "HostMount",
]
