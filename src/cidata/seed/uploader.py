"""Upload packaged seed images into a storage pool."""

import logging

from cidata.backend.base import StorageBackend
from cidata.errors import BackendError, ConnectionUnavailable


logger = logging.getLogger(__name__)


def upload(backend: StorageBackend, pool_name: str, volume_name: str, image: bytes) -> str:
    """Create ``volume_name`` in ``pool_name`` holding ``image`` and return its key.

    Not idempotent: an existing volume with the same name is an error, and a
    failed transfer leaves the partially written volume in place.
    """
    if backend is None:
        raise ConnectionUnavailable("No storage backend connection available")

    volume = backend.define_volume(pool_name, volume_name, len(image))
    logger.debug(f"Defined volume {pool_name}/{volume_name} ({len(image)} bytes)")

    try:
        key = backend.upload_bytes(volume, image)
    except BackendError:
        logger.warning(
            f"Upload to {pool_name}/{volume_name} failed, "
            f"partial volume {volume.key} left in place"
        )
        raise

    logger.info(f"Uploaded seed volume {pool_name}/{volume_name} as {key}")
    return key
