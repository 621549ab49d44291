"""Storage backends for seed volumes."""

from cidata.backend.base import StorageBackend, StorageVolume

__all__ = [
    "StorageBackend",
    "StorageVolume",
]
