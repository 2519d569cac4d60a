"""Tests for error handling classes."""

import pytest

from dshub.core.errors import (
    ConvergeError,
    ConvergeTimeoutError,
    DanglingResourceError,
    DatastoreNotFoundError,
    DsHubError,
    ErrorCode,
    GatewayError,
    HostNotMountedError,
    InvalidImportIdError,
    ObjectNotFoundError,
    ProvisioningError,
    ResourceInUseError,
    ShrinkNotSupportedError,
    VolumeTypeMismatchError,
)
from dshub.core.logging_schema import ErrorClass


class TestDanglingResourceError:
    """Tests for DanglingResourceError."""

    def test_message_carries_both_errors(self) -> None:
        """Message should contain summary, primary and rollback errors."""
        exc = DanglingResourceError(
            "datastore-1",
            "could not move datastore to folder 'a/b'",
            GatewayError("folder not found"),
            GatewayError("remove failed"),
        )

        assert "WARNING: Dangling resource!" in exc.message
        assert "could not move datastore to folder 'a/b'" in exc.message
        assert "folder not found" in exc.message
        assert "remove failed" in exc.message
        assert "datastore-1" in exc.message
        assert "remove this datastore manually" in exc.message

    def test_keeps_error_objects(self) -> None:
        """primary_error and rollback_error should be the original exceptions."""
        primary = GatewayError("a")
        rollback = ResourceInUseError("b")
        exc = DanglingResourceError("datastore-1", "x", primary, rollback)

        assert exc.primary_error is primary
        assert exc.rollback_error is rollback
        assert exc.code == ErrorCode.DANGLING_RESOURCE


class TestGatewayErrorKinds:
    """Tests for gateway error classification attributes."""

    @pytest.mark.parametrize(
        "exc,kind,code",
        [
            (GatewayError("boom"), ErrorClass.OTHER, ErrorCode.GATEWAY_ERROR),
            (ObjectNotFoundError(), ErrorClass.NOT_FOUND, ErrorCode.OBJECT_NOT_FOUND),
            (ResourceInUseError(), ErrorClass.RESOURCE_IN_USE, ErrorCode.RESOURCE_IN_USE),
        ],
    )
    def test_kind_and_code(self, exc: GatewayError, kind: ErrorClass, code: ErrorCode) -> None:
        """Each gateway error should carry its classification."""
        assert exc.kind == kind
        assert exc.code == code
        assert isinstance(exc, DsHubError)


class TestMessages:
    """Error messages should name the offending identifier."""

    def test_shrink_names_disk(self) -> None:
        exc = ShrinkNotSupportedError("naa.2")
        assert exc.message == (
            "disk naa.2 found in state but not config (removal of disks is not supported)"
        )

    def test_import_id_format_hint(self) -> None:
        exc = InvalidImportIdError("datastore-1")
        assert "DATASTOREID:HOSTID" in exc.message
        assert "datastore-1" in exc.message

    def test_datastore_not_found(self) -> None:
        exc = DatastoreNotFoundError("datastore-1", ObjectNotFoundError("gone"))
        assert exc.message == "cannot find datastore 'datastore-1': gone"

    def test_volume_type_mismatch(self) -> None:
        exc = VolumeTypeMismatchError("datastore-1", "NFS", "VMFS")
        assert "is not a VMFS datastore" in exc.message
        assert "'NFS'" in exc.message

    def test_host_not_mounted(self) -> None:
        exc = HostNotMountedError("datastore-1", "host-9")
        assert "'host-9'" in exc.message
        assert "'datastore-1'" in exc.message

    def test_provisioning_rolled_back_flag(self) -> None:
        assert ProvisioningError("x").rolled_back is False
        assert ProvisioningError("x", rolled_back=True).rolled_back is True


class TestConvergeErrors:
    """Tests for convergence errors."""

    def test_timeout_message(self) -> None:
        exc = ConvergeTimeoutError("delete_wait", 300, 12, ResourceInUseError("busy"))
        assert "timeout while waiting for state to become completed" in exc.message
        assert "300s" in exc.message
        assert "12 attempts" in exc.message
        assert "busy" in exc.message

    def test_timeout_without_last_error(self) -> None:
        exc = ConvergeTimeoutError("delete_retry", 30, 3, None)
        assert "last error" not in exc.message

    def test_error_names_loop(self) -> None:
        exc = ConvergeError("delete_retry", GatewayError("permission denied"))
        assert exc.message == "delete_retry: permission denied"
        assert exc.code == ErrorCode.CONVERGE_FAILED
