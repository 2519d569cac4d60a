"""Resource models for ds-hub."""

from dshub.core.models.datastore import (
    DatastoreConfig,
    DatastoreState,
    DatastoreSummary,
    ImportedDatastore,
)

__all__ = [
    "DatastoreConfig",
    "DatastoreState",
    "DatastoreSummary",
    "ImportedDatastore",
]
