"""Storage gateway HTTP client.

This client talks to the storage-management endpoint to create, extend,
remove, rename and move datastores, and to read their properties.

Error responses follow the endpoint's JSON format:
{
    "error": {
        "code": "RESOURCE_IN_USE",
        "message": "The resource 'datastore-123' is in use."
    }
}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from dshub.app.config import get_settings
from dshub.core.errors import GatewayError, ObjectNotFoundError, ResourceInUseError
from dshub.core.interfaces import (
    DatastoreProperties,
    DatastoreRef,
    HostDatastoreSystem,
    RemoteGateway,
    ScsiDisk,
    VmfsCreateSpec,
    VmfsExtendSpec,
)
from dshub.core.logging_schema import Component, ErrorClass
from dshub.core.paths import DATASTORE_ROOT
from dshub.core.retryable import classify_http_status

logger = logging.getLogger(__name__)


@dataclass
class GatewayConnection:
    """Gateway connection configuration."""

    endpoint: str
    api_key: str = ""
    timeout: float = 300.0
    connect_timeout: float = 10.0

    @classmethod
    def from_settings(cls) -> GatewayConnection:
        cfg = get_settings().gateway
        return cls(
            endpoint=cfg.endpoint,
            api_key=cfg.api_key,
            timeout=cfg.api_timeout,
            connect_timeout=cfg.connect_timeout,
        )


def _error_message(resp: httpx.Response) -> str:
    """Extract the error message from an error response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return data["error"].get("message") or resp.reason_phrase
    return resp.text or resp.reason_phrase


def translate_status_error(exc: httpx.HTTPStatusError) -> GatewayError:
    """Convert an HTTP status error into a classified GatewayError."""
    resp = exc.response
    message = f"{resp.request.method} {resp.request.url.path}: {_error_message(resp)}"
    match classify_http_status(resp.status_code):
        case ErrorClass.NOT_FOUND:
            return ObjectNotFoundError(message)
        case ErrorClass.RESOURCE_IN_USE:
            return ResourceInUseError(message)
        case _:
            return GatewayError(f"{message} (HTTP {resp.status_code})")


class GatewayClient(RemoteGateway):
    """HTTP client for the storage-management endpoint.

    Implements RemoteGateway; host-scoped calls go through
    HttpHostDatastoreSystem.
    """

    def __init__(
        self,
        config: GatewayConnection,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def api_timeout(self) -> float:
        return self._config.timeout

    def _get_headers(self) -> dict[str, str]:
        """Get request headers with API key."""
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.endpoint,
                headers=self._get_headers(),
                timeout=httpx.Timeout(
                    self._config.timeout, connect=self._config.connect_timeout
                ),
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: Literal["get", "post", "delete"],
        path: str,
        *,
        on_404: Literal["raise", "none"] = "raise",
        **kwargs: Any,
    ) -> httpx.Response | None:
        """Make HTTP request with common error handling.

        Args:
            method: HTTP method (get, post, delete).
            path: URL path.
            on_404: How to handle 404 responses:
                - "raise": Raise ObjectNotFoundError (default)
                - "none": Return None
            **kwargs: Additional arguments for httpx request.

        Returns:
            Response object, or None if 404 and on_404="none".

        Raises:
            GatewayError: Classified error for any non-2xx response, or a plain
                GatewayError when the request never got a response.
        """
        client = await self._get_client()
        try:
            resp = await getattr(client, method)(path, **kwargs)
        except httpx.TransportError as exc:
            logger.debug(
                "Gateway unreachable: %s",
                exc,
                extra={"component": Component.GATEWAY, "error_class": ErrorClass.OTHER},
            )
            raise GatewayError(f"{method.upper()} {path} failed: {exc!r}") from exc

        if resp.status_code == 404 and on_404 == "none":
            return None

        try:
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            err = translate_status_error(exc)
            logger.debug(
                "Gateway request failed: %s",
                err,
                extra={"component": Component.GATEWAY, "error_class": err.kind},
            )
            raise err from exc
        return resp

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> GatewayClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # =========================================================================
    # RemoteGateway interface
    # =========================================================================

    async def host_datastore_system(self, host_system_id: str) -> HttpHostDatastoreSystem:
        """Look up the datastore system of a host."""
        resp = await self._request(
            "get", f"/api/v1/hosts/{host_system_id}/datastore-system", on_404="none"
        )
        if resp is None:
            raise ObjectNotFoundError(f"host system {host_system_id!r} not found")
        data = resp.json()
        return HttpHostDatastoreSystem(self, host_system_id, data["id"])

    async def get_datastore(self, datastore_id: str) -> DatastoreRef | None:
        """Fetch datastore reference."""
        resp = await self._request("get", f"/api/v1/datastores/{datastore_id}")
        if resp is None or not resp.content:
            return None
        return DatastoreRef.model_validate(resp.json())

    async def datastore_properties(self, datastore_id: str) -> DatastoreProperties:
        """Fetch datastore summary, extents and host mounts."""
        resp = await self._request("get", f"/api/v1/datastores/{datastore_id}/properties")
        return DatastoreProperties.model_validate(resp.json())

    async def rename(self, datastore_id: str, name: str) -> None:
        """Rename datastore."""
        await self._request(
            "post", f"/api/v1/datastores/{datastore_id}/rename", json={"name": name}
        )
        logger.info("Renamed datastore via gateway: %s -> %s", datastore_id, name)

    async def move_to_folder(
        self,
        datastore_id: str,
        folder: str,
        host_system_id: str | None = None,
    ) -> None:
        """Move datastore into a folder below its datacenter's datastore root."""
        if host_system_id:
            dc_path = f"/api/v1/hosts/{host_system_id}/datacenter"
        else:
            dc_path = f"/api/v1/datastores/{datastore_id}/datacenter"
        resp = await self._request("get", dc_path)
        datacenter = resp.json()["inventory_path"]

        folder_path = DATASTORE_ROOT.path_from_datacenter(datacenter, folder)
        await self._request(
            "post",
            "/api/v1/folders/move",
            json={"folder": folder_path, "objects": [datastore_id]},
        )
        logger.info("Moved datastore via gateway: %s -> %s", datastore_id, folder_path)


class HttpHostDatastoreSystem(HostDatastoreSystem):
    """Host datastore system bound to a GatewayClient."""

    def __init__(self, client: GatewayClient, host_system_id: str, dss_id: str) -> None:
        self._client = client
        self.host_system_id = host_system_id
        self.id = dss_id

    @property
    def _base(self) -> str:
        return f"/api/v1/hosts/{self.host_system_id}/datastore-system"

    async def query_available_disks(self, datastore_id: str | None = None) -> list[ScsiDisk]:
        params = {"datastore": datastore_id} if datastore_id else {}
        resp = await self._client._request(
            "get", f"{self._base}/available-disks", params=params
        )
        return [ScsiDisk.model_validate(item) for item in resp.json().get("disks", [])]

    async def query_create_options(self, device_path: str) -> list[VmfsCreateSpec]:
        resp = await self._client._request(
            "post", f"{self._base}/create-options", json={"device_path": device_path}
        )
        return [VmfsCreateSpec.model_validate(item) for item in resp.json().get("options", [])]

    async def query_extend_options(
        self, datastore_id: str, device_path: str
    ) -> list[VmfsExtendSpec]:
        resp = await self._client._request(
            "post",
            f"{self._base}/extend-options",
            json={
                "datastore": datastore_id,
                "device_path": device_path,
                "suppress_expand_candidates": True,
            },
        )
        return [VmfsExtendSpec.model_validate(item) for item in resp.json().get("options", [])]

    async def create_vmfs_datastore(self, spec: VmfsCreateSpec) -> DatastoreRef:
        resp = await self._client._request(
            "post", f"{self._base}/vmfs-datastores", json=spec.model_dump()
        )
        ref = DatastoreRef.model_validate(resp.json())
        logger.info("Created datastore via gateway: %s", ref.id)
        return ref

    async def extend_vmfs_datastore(
        self, datastore_id: str, spec: VmfsExtendSpec
    ) -> DatastoreRef:
        resp = await self._client._request(
            "post",
            f"{self._base}/vmfs-datastores/{datastore_id}/extend",
            json=spec.model_dump(),
        )
        logger.info("Extended datastore via gateway: %s", datastore_id)
        return DatastoreRef.model_validate(resp.json())

    async def remove(self, datastore_id: str) -> None:
        await self._client._request("delete", f"{self._base}/datastores/{datastore_id}")
        logger.info("Removed datastore via gateway: %s", datastore_id)
