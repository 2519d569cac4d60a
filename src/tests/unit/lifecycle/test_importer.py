"""Tests for ImportResolver."""

from unittest.mock import AsyncMock

import pytest

from dshub.control.lifecycle.importer import ImportResolver, parse_import_id
from dshub.core.errors import (
    DatastoreNotFoundError,
    HostNotMountedError,
    InvalidImportIdError,
    ObjectNotFoundError,
    VolumeTypeMismatchError,
)


class TestParseImportId:
    def test_valid(self) -> None:
        assert parse_import_id("datastore-101:host-7") == ("datastore-101", "host-7")

    def test_splits_on_first_colon(self) -> None:
        assert parse_import_id("datastore-101:host:7") == ("datastore-101", "host:7")

    @pytest.mark.parametrize("raw", ["", "datastore-101", ":host-7", "datastore-101:", ":"])
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidImportIdError, match="DATASTOREID:HOSTID"):
            parse_import_id(raw)


class TestResolve:
    async def test_vmfs_mounted(self, mock_gateway: AsyncMock, inventory) -> None:
        imported = await ImportResolver(mock_gateway).resolve("datastore-101:host-7")

        assert imported.id == "datastore-101"
        assert imported.host_system_id == "host-7"

    async def test_malformed_id_no_remote_call(self, mock_gateway: AsyncMock) -> None:
        with pytest.raises(InvalidImportIdError):
            await ImportResolver(mock_gateway).resolve("datastore-101")

        mock_gateway.get_datastore.assert_not_awaited()

    async def test_not_found(self, mock_gateway: AsyncMock) -> None:
        mock_gateway.get_datastore = AsyncMock(side_effect=ObjectNotFoundError())

        with pytest.raises(DatastoreNotFoundError):
            await ImportResolver(mock_gateway).resolve("datastore-101:host-7")

    async def test_not_vmfs(self, mock_gateway: AsyncMock, inventory) -> None:
        inventory.type = "NFS"

        with pytest.raises(VolumeTypeMismatchError, match="is not a VMFS datastore"):
            await ImportResolver(mock_gateway).resolve("datastore-101:host-7")

    async def test_host_not_mounted(self, mock_gateway: AsyncMock, inventory) -> None:
        inventory.hosts = ("host-1", "host-2")

        with pytest.raises(HostNotMountedError, match="'host-7'"):
            await ImportResolver(mock_gateway).resolve("datastore-101:host-7")

    async def test_one_of_many_hosts(self, mock_gateway: AsyncMock, inventory) -> None:
        inventory.hosts = ("host-1", "host-7")

        imported = await ImportResolver(mock_gateway).resolve("datastore-101:host-7")

        assert imported.host_system_id == "host-7"
