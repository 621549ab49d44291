"""libvirt storage backend."""

import logging
from contextlib import suppress
from typing import Any, List, Optional
from xml.sax.saxutils import escape

import libvirt

from cidata.backend.base import StorageVolume
from cidata.errors import BackendError, ConnectionUnavailable, NotFoundError


logger = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024

VOLUME_XML = """<volume>
  <name>{name}</name>
  <allocation unit="bytes">0</allocation>
  <capacity unit="bytes">{capacity}</capacity>
  <target>
    <format type="raw"/>
  </target>
</volume>"""


def _abort(stream):
    with suppress(libvirt.libvirtError):
        stream.abort()


def _translate(error: "libvirt.libvirtError", message: str) -> BackendError:
    """Map a libvirt error onto the cidata error taxonomy."""
    code = error.get_error_code()
    if code in (libvirt.VIR_ERR_NO_STORAGE_VOL, libvirt.VIR_ERR_NO_STORAGE_POOL):
        return NotFoundError(f"{message}: {error}")
    return BackendError(f"{message}: {error}")


class LibvirtBackend:
    """Seed volume storage on a libvirt connection."""

    def __init__(self, conn: Optional["libvirt.virConnect"]):
        """Wrap an open libvirt connection."""
        if conn is None:
            raise ConnectionUnavailable("The libvirt connection was nil.")
        self.conn = conn

    @classmethod
    def open(cls, uri: str) -> "LibvirtBackend":
        """Open a read-write connection to ``uri``."""
        try:
            conn = libvirt.open(uri)
        except libvirt.libvirtError as e:
            raise ConnectionUnavailable(f"Failed to connect to {uri}: {e}") from e
        logger.debug(f"Connected to libvirt at {uri}")
        return cls(conn)

    def close(self):
        """Close the underlying connection."""
        try:
            self.conn.close()
        except libvirt.libvirtError as e:
            logger.warning(f"Error closing libvirt connection: {e}")

    def list_pools(self) -> List[str]:
        try:
            return sorted(pool.name() for pool in self.conn.listAllStoragePools(0))
        except libvirt.libvirtError as e:
            raise _translate(e, "Failed to list storage pools") from e

    def get_pool(self, name: str) -> Any:
        try:
            return self.conn.storagePoolLookupByName(name)
        except libvirt.libvirtError as e:
            raise BackendError(f"Storage pool {name!r} not found: {e}") from e

    def _volume(self, vol: Any) -> StorageVolume:
        pool = vol.storagePoolLookupByVolume()
        info = vol.info()
        return StorageVolume(
            name=vol.name(),
            pool=pool.name(),
            key=vol.key(),
            capacity=info[1],
            handle=vol,
        )

    def define_volume(self, pool: str, name: str, capacity: int) -> StorageVolume:
        storage_pool = self.get_pool(pool)
        try:
            # Pick up volumes created outside libvirt before checking for collisions
            storage_pool.refresh(0)
        except libvirt.libvirtError as e:
            logger.debug(f"Could not refresh pool {pool}: {e}")

        try:
            storage_pool.storageVolLookupByName(name)
        except libvirt.libvirtError:
            pass
        else:
            raise BackendError(f"Volume {name!r} already exists in pool {pool!r}")

        xml = VOLUME_XML.format(name=escape(name), capacity=capacity)
        try:
            vol = storage_pool.createXML(xml, 0)
            return self._volume(vol)
        except libvirt.libvirtError as e:
            raise _translate(e, f"Failed to define volume {name} in pool {pool}") from e

    def upload_bytes(self, volume: StorageVolume, data: bytes) -> str:
        stream = self.conn.newStream(0)
        try:
            volume.handle.upload(stream, 0, len(data), 0)
            offset = 0
            while offset < len(data):
                sent = stream.send(data[offset:offset + CHUNK_SIZE])
                if sent < 0:
                    raise BackendError(f"Stream write to {volume.name} failed")
                offset += sent
            stream.finish()
        except libvirt.libvirtError as e:
            _abort(stream)
            raise _translate(e, f"Failed to upload volume {volume.name}") from e
        except BackendError:
            _abort(stream)
            raise

        logger.debug(f"Uploaded {len(data)} bytes to {volume.pool}/{volume.name}")
        return volume.key

    def lookup_volume_by_key(self, key: str) -> StorageVolume:
        try:
            vol = self.conn.storageVolLookupByKey(key)
            return self._volume(vol)
        except libvirt.libvirtError as e:
            raise _translate(e, f"Volume {key!r} could not be resolved") from e

    def download_bytes(self, volume: StorageVolume) -> bytes:
        chunks: List[bytes] = []
        stream = self.conn.newStream(0)
        try:
            volume.handle.download(stream, 0, volume.capacity, 0)
            stream.recvAll(lambda _stream, data, buf: buf.append(data), chunks)
            stream.finish()
        except libvirt.libvirtError as e:
            _abort(stream)
            raise _translate(e, f"Failed to download volume {volume.name}") from e
        return b"".join(chunks)

    def delete_volume(self, volume: StorageVolume) -> None:
        try:
            volume.handle.delete(0)
        except libvirt.libvirtError as e:
            raise _translate(e, f"Failed to delete volume {volume.name}") from e
        logger.debug(f"Deleted volume {volume.pool}/{volume.name}")
