"""Inventory path helpers.

Datastores live in the inventory below their datacenter's datastore root:

    /<datacenter path>/datastore/<folder path>/<datastore name>

Folder paths in configuration are relative to that root and normalized
without leading or trailing slashes.
"""

from dshub.core.errors import InventoryPathError


def normalize_folder_path(path: str) -> str:
    """Strip leading and trailing slashes from a folder path."""
    return path.strip("/")


def path_is_empty(path: str) -> bool:
    """Check if a folder path points at the root."""
    return normalize_folder_path(path) == ""


class RootPathParticle:
    """Inventory root particle of one object type (e.g. "datastore")."""

    def __init__(self, particle: str) -> None:
        self.particle = particle

    def split_relative_folder(self, inventory_path: str) -> str:
        """Return the folder path of an object relative to the root particle.

        /dc1/datastore/a/b/ds1 -> "a/b"

        Raises:
            InventoryPathError: If the path does not contain the particle.
        """
        parts = [p for p in inventory_path.split("/") if p]
        try:
            idx = parts.index(self.particle)
        except ValueError:
            raise InventoryPathError(
                inventory_path, f"root particle {self.particle!r} not found"
            ) from None
        if idx == 0:
            raise InventoryPathError(inventory_path, "missing datacenter path")
        if idx == len(parts) - 1:
            raise InventoryPathError(inventory_path, "missing object name")
        return "/".join(parts[idx + 1 : -1])

    def path_from_datacenter(self, datacenter_path: str, folder: str) -> str:
        """Build the absolute inventory path of a folder."""
        base = f"/{normalize_folder_path(datacenter_path)}/{self.particle}"
        folder = normalize_folder_path(folder)
        return f"{base}/{folder}" if folder else base


DATASTORE_ROOT = RootPathParticle("datastore")
