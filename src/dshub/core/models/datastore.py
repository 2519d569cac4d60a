"""Datastore resource models.

DatastoreConfig is the desired state handed in by the caller,
DatastoreState the observed state projected from the remote system.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from dshub.core.errors import InvalidConfigError
from dshub.core.paths import normalize_folder_path

_BYTES_PER_MB = 1024 * 1024


class DatastoreConfig(BaseModel):
    """Desired configuration of a VMFS datastore.

    Attributes:
        name: Datastore display name (rename on change)
        host_system_id: Host the datastore is set up on (immutable)
        folder: Folder path relative to the datastore root (move on change)
        disks: Disk canonical names; the first one becomes the initial extent
    """

    name: str = Field(min_length=1)
    host_system_id: str = Field(min_length=1)
    folder: str = ""
    disks: list[str] = Field(min_length=1)

    model_config = {"frozen": True}

    @field_validator("folder")
    @classmethod
    def _normalize_folder(cls, v: str) -> str:
        return normalize_folder_path(v)

    @field_validator("disks")
    @classmethod
    def _check_disks(cls, v: list[str]) -> list[str]:
        if any(not disk for disk in v):
            raise ValueError("disk names must not be empty")
        if len(set(v)) != len(v):
            raise ValueError("disk names must be unique")
        return v

    @classmethod
    def load(cls, data: dict[str, Any]) -> "DatastoreConfig":
        """Validate raw configuration.

        Raises:
            InvalidConfigError: If a field is missing or malformed.
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise InvalidConfigError(f"invalid datastore configuration: {e}") from e


class DatastoreSummary(BaseModel):
    """Informational summary (sizes in MB)."""

    type: str
    accessible: bool
    capacity: int
    free_space: int
    uncommitted_space: int
    maintenance_mode: str
    multiple_host_access: bool
    url: str

    model_config = {"frozen": True}

    @staticmethod
    def byte_to_mb(value: int) -> int:
        return value // _BYTES_PER_MB


class DatastoreState(BaseModel):
    """Observed state of a datastore, rebuilt on every read."""

    id: str
    host_system_id: str
    name: str
    folder: str
    disks: list[str]
    summary: DatastoreSummary | None = None

    model_config = {"frozen": True}


class ImportedDatastore(BaseModel):
    """Identity seeded by import; the rest comes from the next read."""

    id: str
    host_system_id: str

    model_config = {"frozen": True}
