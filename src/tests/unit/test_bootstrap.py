"""Tests for process bootstrap."""

from unittest.mock import MagicMock

import pytest

from dshub.app import main
from dshub.app.config import get_settings
from dshub.control.lifecycle import VmfsDatastoreResource
from dshub.gateway.client import GatewayConnection


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestBootstrap:
    def test_metrics_enabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        setup_logging, setup_metrics = MagicMock(), MagicMock()
        monkeypatch.setattr(main, "setup_logging", setup_logging)
        monkeypatch.setattr(main, "setup_metrics", setup_metrics)

        main.bootstrap()

        setup_logging.assert_called_once_with()
        setup_metrics.assert_called_once_with(9108, "0.0.0.0")

    def test_metrics_disabled(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("METRICS_ENABLED", "false")
        setup_metrics = MagicMock()
        monkeypatch.setattr(main, "setup_logging", MagicMock())
        monkeypatch.setattr(main, "setup_metrics", setup_metrics)

        main.bootstrap()

        setup_metrics.assert_not_called()


class TestOpenResource:
    async def test_yields_resource_and_closes(self) -> None:
        conn = GatewayConnection(endpoint="http://gateway:8443")

        async with main.open_resource(conn) as resource:
            assert isinstance(resource, VmfsDatastoreResource)
            client = resource._gateway
            await client._get_client()

        assert client._client is None
