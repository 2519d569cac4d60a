"""Error handling module for ds-hub.

This module defines error codes and the exception hierarchy raised by the
datastore lifecycle engine and the gateway client.

Taxonomy:
- input validation: InvalidConfigError, InvalidImportIdError,
  ReplacementRequiredError (never touch the remote system)
- resolution: DiskResolutionError
- remote: GatewayError and its classified subclasses
- policy: ShrinkNotSupportedError
- provisioning: ProvisioningError, DanglingResourceError
- convergence: ConvergeError, ConvergeTimeoutError, DeleteFailedError

Usage:
    from dshub.core.errors import DatastoreNotFoundError

    raise DatastoreNotFoundError("datastore-123", cause)
"""

from enum import Enum

from dshub.core.logging_schema import ErrorClass


class ErrorCode(str, Enum):
    """Error codes."""

    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_IMPORT_ID = "INVALID_IMPORT_ID"
    REPLACEMENT_REQUIRED = "REPLACEMENT_REQUIRED"
    DISK_NOT_AVAILABLE = "DISK_NOT_AVAILABLE"
    GATEWAY_ERROR = "GATEWAY_ERROR"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    RESOURCE_IN_USE = "RESOURCE_IN_USE"
    DATASTORE_NOT_FOUND = "DATASTORE_NOT_FOUND"
    INVENTORY_PATH_INVALID = "INVENTORY_PATH_INVALID"
    SHRINK_NOT_SUPPORTED = "SHRINK_NOT_SUPPORTED"
    PROVISIONING_FAILED = "PROVISIONING_FAILED"
    DANGLING_RESOURCE = "DANGLING_RESOURCE"
    VOLUME_TYPE_MISMATCH = "VOLUME_TYPE_MISMATCH"
    HOST_NOT_MOUNTED = "HOST_NOT_MOUNTED"
    CONVERGE_FAILED = "CONVERGE_FAILED"
    CONVERGE_TIMEOUT = "CONVERGE_TIMEOUT"
    DELETE_FAILED = "DELETE_FAILED"


class DsHubError(Exception):
    """Base exception for ds-hub.

    All ds-hub specific exceptions inherit from this class.

    Attributes:
        code: The error code from ErrorCode enum
        message: Human-readable error message
    """

    def __init__(self, code: ErrorCode, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(message)


# =============================================================================
# Input validation
# =============================================================================


class InvalidConfigError(DsHubError):
    """Desired configuration is malformed."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.INVALID_CONFIG, message)


class InvalidImportIdError(DsHubError):
    """Import identifier is not DATASTOREID:HOSTID."""

    def __init__(self, raw_id: str) -> None:
        self.raw_id = raw_id
        super().__init__(
            ErrorCode.INVALID_IMPORT_ID,
            f"please supply the ID in the following format: DATASTOREID:HOSTID (got {raw_id!r})",
        )


class ReplacementRequiredError(DsHubError):
    """host_system_id changed; the datastore must be destroyed and recreated."""

    def __init__(self, datastore_id: str, old_host: str, new_host: str) -> None:
        self.datastore_id = datastore_id
        super().__init__(
            ErrorCode.REPLACEMENT_REQUIRED,
            f"host_system_id of datastore {datastore_id!r} cannot change in place "
            f"({old_host!r} -> {new_host!r}); the datastore must be replaced",
        )


# =============================================================================
# Resolution
# =============================================================================


class DiskResolutionError(DsHubError):
    """Disk identifier could not be resolved against the host's available disks."""

    def __init__(self, disk: str, message: str) -> None:
        self.disk = disk
        super().__init__(ErrorCode.DISK_NOT_AVAILABLE, message)


# =============================================================================
# Remote (gateway) errors
# =============================================================================


class GatewayError(DsHubError):
    """Error returned by the storage-management endpoint.

    Attributes:
        kind: ErrorClass classification (not_found, resource_in_use, other)
    """

    kind: ErrorClass = ErrorClass.OTHER

    def __init__(self, message: str, code: ErrorCode = ErrorCode.GATEWAY_ERROR) -> None:
        super().__init__(code, message)


class ObjectNotFoundError(GatewayError):
    """Managed object does not exist (anymore)."""

    kind = ErrorClass.NOT_FOUND

    def __init__(self, message: str = "managed object not found") -> None:
        super().__init__(message, ErrorCode.OBJECT_NOT_FOUND)


class ResourceInUseError(GatewayError):
    """Managed object is busy; retryable during deletion."""

    kind = ErrorClass.RESOURCE_IN_USE

    def __init__(self, message: str = "resource in use") -> None:
        super().__init__(message, ErrorCode.RESOURCE_IN_USE)


class DatastoreNotFoundError(DsHubError):
    """Datastore looked up by ID is absent."""

    def __init__(self, datastore_id: str, cause: Exception | str) -> None:
        self.datastore_id = datastore_id
        super().__init__(
            ErrorCode.DATASTORE_NOT_FOUND,
            f"cannot find datastore {datastore_id!r}: {cause}",
        )


class InventoryPathError(DsHubError):
    """Inventory path does not live under the expected root."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        super().__init__(
            ErrorCode.INVENTORY_PATH_INVALID,
            f"error parsing datastore path {path!r}: {reason}",
        )


# =============================================================================
# Policy
# =============================================================================


class ShrinkNotSupportedError(DsHubError):
    """Desired disk list omits a disk that is already an extent."""

    def __init__(self, disk: str) -> None:
        self.disk = disk
        super().__init__(
            ErrorCode.SHRINK_NOT_SUPPORTED,
            f"disk {disk} found in state but not config (removal of disks is not supported)",
        )


# =============================================================================
# Provisioning
# =============================================================================


class ProvisioningError(DsHubError):
    """A provisioning step failed.

    Attributes:
        rolled_back: True if the created datastore was removed again,
            False if the failure happened before anything was created.
    """

    def __init__(self, message: str, rolled_back: bool = False) -> None:
        self.rolled_back = rolled_back
        super().__init__(ErrorCode.PROVISIONING_FAILED, message)


class DanglingResourceError(DsHubError):
    """A provisioning step failed and so did the compensating removal.

    The message always carries both errors and the manual cleanup
    instruction.
    """

    def __init__(
        self,
        datastore_id: str,
        summary: str,
        primary_error: Exception,
        rollback_error: Exception,
    ) -> None:
        self.datastore_id = datastore_id
        self.primary_error = primary_error
        self.rollback_error = rollback_error
        message = (
            "\nWARNING: Dangling resource!\n"
            f"{summary}:\n"
            f"{primary_error}\n"
            f"Additionally, there was an error removing the created datastore {datastore_id!r}:\n"
            f"{rollback_error}\n"
            "You will need to remove this datastore manually before trying again.\n"
        )
        super().__init__(ErrorCode.DANGLING_RESOURCE, message)


# =============================================================================
# Import
# =============================================================================


class VolumeTypeMismatchError(DsHubError):
    """Imported datastore is not of the expected filesystem type."""

    def __init__(self, datastore_id: str, actual: str, expected: str) -> None:
        self.datastore_id = datastore_id
        self.actual = actual
        super().__init__(
            ErrorCode.VOLUME_TYPE_MISMATCH,
            f"datastore ID {datastore_id!r} is not a {expected} datastore (type {actual!r})",
        )


class HostNotMountedError(DsHubError):
    """Imported datastore is not mounted on the configured host."""

    def __init__(self, datastore_id: str, host_system_id: str) -> None:
        self.datastore_id = datastore_id
        self.host_system_id = host_system_id
        super().__init__(
            ErrorCode.HOST_NOT_MOUNTED,
            f"configured host_system_id {host_system_id!r} not found as a mounted host "
            f"on datastore {datastore_id!r}",
        )


# =============================================================================
# Convergence
# =============================================================================


class ConvergeError(DsHubError):
    """Convergence loop reached its error state."""

    def __init__(self, loop: str, cause: Exception | None) -> None:
        self.loop = loop
        self.cause = cause
        super().__init__(ErrorCode.CONVERGE_FAILED, f"{loop}: {cause}")


class ConvergeTimeoutError(DsHubError):
    """Convergence loop still pending when its deadline passed."""

    def __init__(self, loop: str, timeout: float, attempts: int, last_error: Exception | None) -> None:
        self.loop = loop
        self.timeout = timeout
        self.attempts = attempts
        self.last_error = last_error
        message = f"{loop}: timeout while waiting for state to become completed ({timeout:g}s, {attempts} attempts)"
        if last_error is not None:
            message += f", last error: {last_error}"
        super().__init__(ErrorCode.CONVERGE_TIMEOUT, message)


class DeleteFailedError(DsHubError):
    """Datastore deletion did not converge."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorCode.DELETE_FAILED, message)
