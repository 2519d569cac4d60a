"""Import resolver - adopt an existing datastore from a composite ID.

ID format: DATASTOREID:HOSTID. Splitting happens on the first colon only,
so host IDs may contain colons.
"""

import logging

from dshub.control.lifecycle.reader import fetch_datastore
from dshub.core.domain import VolumeType
from dshub.core.errors import HostNotMountedError, InvalidImportIdError, VolumeTypeMismatchError
from dshub.core.interfaces import RemoteGateway
from dshub.core.logging_schema import Component, LogEvent
from dshub.core.models import ImportedDatastore

logger = logging.getLogger(__name__)

IMPORT_ID_SEPARATOR = ":"


def parse_import_id(raw: str) -> tuple[str, str]:
    """Split DATASTOREID:HOSTID.

    Raises:
        InvalidImportIdError: Separator missing or a part is empty.
    """
    datastore_id, sep, host_system_id = raw.partition(IMPORT_ID_SEPARATOR)
    if not sep or not datastore_id or not host_system_id:
        raise InvalidImportIdError(raw)
    return datastore_id, host_system_id


class ImportResolver:
    """Validates that an existing datastore can be adopted."""

    def __init__(self, gateway: RemoteGateway) -> None:
        self._gateway = gateway

    async def resolve(self, raw_id: str) -> ImportedDatastore:
        """Resolve an import ID into the identity seeded into state.

        Raises:
            InvalidImportIdError: Malformed ID.
            DatastoreNotFoundError: Datastore does not exist.
            VolumeTypeMismatchError: Datastore is not VMFS.
            HostNotMountedError: Host is not among the datastore's mounts.
        """
        datastore_id, host_system_id = parse_import_id(raw_id)
        ctx = {"component": Component.IMPORT, "ds_id": datastore_id, "host_id": host_system_id}

        await fetch_datastore(self._gateway, datastore_id)
        props = await self._gateway.datastore_properties(datastore_id)

        if props.summary.type != VolumeType.VMFS:
            logger.warning(
                "Rejected import of non-VMFS datastore",
                extra={**ctx, "event": LogEvent.IMPORT_REJECTED, "type": props.summary.type},
            )
            raise VolumeTypeMismatchError(datastore_id, props.summary.type, VolumeType.VMFS)

        if not any(mount.key == host_system_id for mount in props.host):
            logger.warning(
                "Rejected import, host does not mount datastore",
                extra={**ctx, "event": LogEvent.IMPORT_REJECTED},
            )
            raise HostNotMountedError(datastore_id, host_system_id)

        return ImportedDatastore(id=datastore_id, host_system_id=host_system_id)
