"""Storage backend interface."""

from dataclasses import dataclass, field
from typing import Any, List, Protocol


@dataclass
class StorageVolume:
    """A volume inside a storage pool."""
    name: str
    pool: str
    key: str
    capacity: int = 0
    handle: Any = field(default=None, repr=False, compare=False)


class StorageBackend(Protocol):
    """Operations consumed from the virtualization backend.

    Implementations translate their own failures into ``BackendError``
    (``NotFoundError`` when a key or name does not resolve).
    """

    def list_pools(self) -> List[str]:
        """Names of the storage pools."""
        ...

    def get_pool(self, name: str) -> Any:
        """Look up a pool by name."""
        ...

    def define_volume(self, pool: str, name: str, capacity: int) -> StorageVolume:
        """Create an empty volume of ``capacity`` bytes."""
        ...

    def upload_bytes(self, volume: StorageVolume, data: bytes) -> str:
        """Write ``data`` into the volume and return its key."""
        ...

    def lookup_volume_by_key(self, key: str) -> StorageVolume:
        """Resolve a volume key."""
        ...

    def download_bytes(self, volume: StorageVolume) -> bytes:
        """Read the full content of a volume."""
        ...

    def delete_volume(self, volume: StorageVolume) -> None:
        """Remove a volume from its pool."""
        ...
