"""Shared fixtures."""

import io
import logging
from typing import Dict, List

import pycdlib
import pytest

from cidata.backend.base import StorageVolume
from cidata.errors import BackendError, NotFoundError


SSH_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC7 user@example.com"


class FakeBackend:
    """In-memory storage backend."""

    def __init__(self, pools=("default",)):
        self.pools: Dict[str, Dict[str, StorageVolume]] = {name: {} for name in pools}
        self.fail_upload = False
        self.closed = False

    def list_pools(self) -> List[str]:
        return sorted(self.pools)

    def get_pool(self, name):
        if name not in self.pools:
            raise BackendError(f"Storage pool {name!r} not found")
        return self.pools[name]

    def define_volume(self, pool, name, capacity):
        volumes = self.get_pool(pool)
        if name in volumes:
            raise BackendError(f"Volume {name!r} already exists in pool {pool!r}")
        volume = StorageVolume(
            name=name,
            pool=pool,
            key=f"/var/lib/libvirt/images/{pool}/{name}",
            capacity=capacity,
            handle=bytearray(),
        )
        volumes[name] = volume
        return volume

    def upload_bytes(self, volume, data):
        if self.fail_upload:
            raise BackendError("write rejected")
        volume.handle[:] = data
        return volume.key

    def lookup_volume_by_key(self, key):
        for volumes in self.pools.values():
            for volume in volumes.values():
                if volume.key == key:
                    return volume
        raise NotFoundError(f"Volume {key!r} could not be resolved")

    def download_bytes(self, volume):
        return bytes(volume.handle)

    def delete_volume(self, volume):
        del self.pools[volume.pool][volume.name]

    def close(self):
        self.closed = True


def make_iso(files: Dict[str, str], volid: str = "cidata") -> bytes:
    """Build an ISO with the given root files, bypassing the packager."""
    iso = pycdlib.PyCdlib()
    iso.new(vol_ident=volid, joliet=3, rock_ridge="1.09")
    for index, (name, content) in enumerate(files.items()):
        payload = content.encode("utf-8")
        iso.add_fp(
            io.BytesIO(payload),
            len(payload),
            f"/FILE{index}.;1",
            rr_name=name,
            joliet_path=f"/{name}",
        )
    out = io.BytesIO()
    iso.write_fp(out)
    iso.close()
    return out.getvalue()


def read_iso_file(image: bytes, name: str) -> str:
    """Extract one root file from an ISO by its Rock Ridge name."""
    iso = pycdlib.PyCdlib()
    iso.open_fp(io.BytesIO(image))
    try:
        out = io.BytesIO()
        iso.get_file_from_iso_fp(out, rr_path=f"/{name}")
        return out.getvalue().decode("utf-8")
    finally:
        iso.close()


@pytest.fixture
def backend():
    """Empty in-memory backend with a ``default`` pool."""
    return FakeBackend()


@pytest.fixture
def ssh_key():
    return SSH_KEY


@pytest.fixture
def iso_factory():
    return make_iso


@pytest.fixture
def iso_file():
    return read_iso_file


@pytest.fixture(autouse=True)
def reset_cidata_logger():
    """Drop handlers the CLI attaches so they do not outlive a test."""
    yield
    logger = logging.getLogger("cidata")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
