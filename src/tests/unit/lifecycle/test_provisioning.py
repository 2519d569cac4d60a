"""Tests for ProvisioningPipeline.

Every failure after the datastore exists triggers exactly one removal;
the removal outcome picks ProvisioningError(rolled_back=True) or
DanglingResourceError.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from dshub.control.lifecycle.provisioning import ProvisioningPipeline, StepResult
from dshub.core.domain import ProvisionStep, StepOutcome
from dshub.core.errors import (
    DanglingResourceError,
    DiskResolutionError,
    GatewayError,
    ProvisioningError,
    ResourceInUseError,
)
from dshub.core.models import DatastoreConfig


def _config(disks: list[str], folder: str = "") -> DatastoreConfig:
    return DatastoreConfig(name="ds1", host_system_id="host-7", folder=folder, disks=disks)


class TestProvisionSuccess:
    async def test_single_disk(self, mock_gateway: AsyncMock, mock_dss: AsyncMock) -> None:
        state = await ProvisioningPipeline(mock_gateway).provision(mock_dss, _config(["naa.1"]))

        assert state.id == "datastore-101"
        assert state.name == "ds1"
        assert state.disks == ["naa.1"]
        assert state.folder == ""
        spec = mock_dss.create_vmfs_datastore.await_args.args[0]
        assert spec.volume_name == "ds1"
        mock_gateway.move_to_folder.assert_not_awaited()
        mock_dss.extend_vmfs_datastore.assert_not_awaited()
        mock_dss.remove.assert_not_awaited()

    async def test_folder_and_extents(self, mock_gateway: AsyncMock, mock_dss: AsyncMock) -> None:
        """Move once, then extend in configuration order."""
        state = await ProvisioningPipeline(mock_gateway).provision(
            mock_dss, _config(["naa.1", "naa.3", "naa.2"], folder="/a/b")
        )

        assert state.folder == "a/b"
        assert state.disks == ["naa.1", "naa.3", "naa.2"]
        mock_gateway.move_to_folder.assert_awaited_once_with(
            "datastore-101", "a/b", host_system_id="host-7"
        )
        extended = [c.args[1].extent.disk_name for c in mock_dss.extend_vmfs_datastore.await_args_list]
        assert extended == ["naa.3", "naa.2"]


class TestCreateFailure:
    async def test_create_error_no_rollback(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_dss.create_vmfs_datastore = AsyncMock(side_effect=GatewayError("no space"))

        with pytest.raises(ProvisioningError, match="error creating datastore with disk naa.1") as ei:
            await ProvisioningPipeline(mock_gateway).provision(mock_dss, _config(["naa.1"]))

        assert ei.value.rolled_back is False
        mock_dss.remove.assert_not_awaited()

    async def test_unknown_first_disk(self, mock_gateway: AsyncMock, mock_dss: AsyncMock) -> None:
        with pytest.raises(DiskResolutionError):
            await ProvisioningPipeline(mock_gateway).provision(mock_dss, _config(["naa.99"]))

        mock_dss.create_vmfs_datastore.assert_not_awaited()
        mock_dss.remove.assert_not_awaited()


class TestCompensation:
    async def test_move_failure_rolled_back(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_gateway.move_to_folder = AsyncMock(side_effect=GatewayError("no such folder"))

        with pytest.raises(ProvisioningError, match="could not move datastore to folder 'x'") as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1", "naa.2"], folder="x")
            )

        assert ei.value.rolled_back is True
        mock_dss.remove.assert_awaited_once_with("datastore-101")
        mock_dss.extend_vmfs_datastore.assert_not_awaited()

    async def test_move_failure_dangling(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_gateway.move_to_folder = AsyncMock(side_effect=GatewayError("no such folder"))
        mock_dss.remove = AsyncMock(side_effect=ResourceInUseError("busy"))

        with pytest.raises(DanglingResourceError) as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1"], folder="x")
            )

        assert "no such folder" in ei.value.message
        assert "busy" in ei.value.message
        assert ei.value.datastore_id == "datastore-101"
        mock_dss.remove.assert_awaited_once()

    async def test_extend_spec_failure(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        """Unknown extra disk → datastore removed, message names the disk."""
        with pytest.raises(ProvisioningError, match="extend spec for disk 'naa.99'") as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1", "naa.99"])
            )

        assert ei.value.rolled_back is True
        mock_dss.remove.assert_awaited_once_with("datastore-101")

    async def test_extend_failure_midway(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        """Second extend fails → one removal, third disk never attempted."""
        calls = 0

        async def extend(datastore_id, spec):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise GatewayError("device busy")

        mock_dss.extend_vmfs_datastore = AsyncMock(side_effect=extend)

        with pytest.raises(ProvisioningError, match="error extending datastore with disk 'naa.3'"):
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1", "naa.2", "naa.3", "naa.4"])
            )

        assert mock_dss.extend_vmfs_datastore.await_count == 2
        mock_dss.remove.assert_awaited_once()

    async def test_extend_failure_dangling(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_dss.extend_vmfs_datastore = AsyncMock(side_effect=GatewayError("device busy"))
        mock_dss.remove = AsyncMock(side_effect=GatewayError("permission denied"))

        with pytest.raises(DanglingResourceError) as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1", "naa.2"])
            )

        assert "error extending datastore with disk 'naa.2'" in ei.value.message
        assert isinstance(ei.value.rollback_error, GatewayError)
        mock_dss.remove.assert_awaited_once()

    async def test_read_failure_after_create(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_gateway.datastore_properties = AsyncMock(side_effect=GatewayError("timeout"))
        mock_dss.remove = AsyncMock(side_effect=GatewayError("permission denied"))

        with pytest.raises(DanglingResourceError, match="error fetching its properties"):
            await ProvisioningPipeline(mock_gateway).provision(mock_dss, _config(["naa.1"]))

        mock_dss.remove.assert_awaited_once()


class TestStepTimeouts:
    """Hung gateway calls are cut at api_timeout (real clock)."""

    @staticmethod
    async def hang(*args, **kwargs) -> None:
        await asyncio.Event().wait()

    async def test_hung_move_rolled_back(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_gateway.api_timeout = 0.05
        mock_gateway.move_to_folder = AsyncMock(side_effect=self.hang)

        with pytest.raises(ProvisioningError, match="move timed out") as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1"], folder="x")
            )

        assert ei.value.rolled_back is True
        mock_dss.remove.assert_awaited_once_with("datastore-101")

    async def test_hung_removal_dangling(
        self, mock_gateway: AsyncMock, mock_dss: AsyncMock
    ) -> None:
        mock_gateway.api_timeout = 0.05
        mock_gateway.move_to_folder = AsyncMock(side_effect=GatewayError("no such folder"))
        mock_dss.remove = AsyncMock(side_effect=self.hang)

        with pytest.raises(DanglingResourceError) as ei:
            await ProvisioningPipeline(mock_gateway).provision(
                mock_dss, _config(["naa.1"], folder="x")
            )

        assert "remove timed out" in str(ei.value.rollback_error)
        mock_dss.remove.assert_awaited_once()


class TestStepResult:
    def test_success_does_not_raise(self) -> None:
        result = StepResult(step=ProvisionStep.MOVE, outcome=StepOutcome.SUCCESS)
        assert result.ok
        result.raise_for_outcome("ds", "ctx")

    def test_rolled_back_raises(self) -> None:
        result = StepResult(
            step=ProvisionStep.EXTEND,
            outcome=StepOutcome.ROLLED_BACK,
            error=GatewayError("boom"),
        )
        with pytest.raises(ProvisioningError, match="ctx: boom"):
            result.raise_for_outcome("ds", "ctx")
