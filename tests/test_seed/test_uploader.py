"""Tests for the storage uploader."""

import logging

import pytest

from cidata.errors import BackendError, ConnectionUnavailable
from cidata.seed.uploader import upload


class TestUpload:
    """Test upload()."""

    def test_upload_returns_key(self, backend):
        key = upload(backend, "default", "ci1", b"image-bytes")

        assert key == "/var/lib/libvirt/images/default/ci1"
        volume = backend.lookup_volume_by_key(key)
        assert volume.capacity == len(b"image-bytes")
        assert backend.download_bytes(volume) == b"image-bytes"

    def test_missing_pool(self, backend):
        with pytest.raises(BackendError):
            upload(backend, "nope", "ci1", b"image-bytes")

        assert backend.pools == {"default": {}}

    def test_existing_volume_not_overwritten(self, backend):
        upload(backend, "default", "ci1", b"first")

        with pytest.raises(BackendError):
            upload(backend, "default", "ci1", b"second")

        volume = backend.pools["default"]["ci1"]
        assert backend.download_bytes(volume) == b"first"

    def test_failed_write_leaves_partial_volume(self, backend, caplog):
        backend.fail_upload = True

        with caplog.at_level(logging.WARNING, logger="cidata.seed.uploader"):
            with pytest.raises(BackendError):
                upload(backend, "default", "ci1", b"image-bytes")

        assert "ci1" in backend.pools["default"]
        assert "partial volume" in caplog.text

    def test_no_backend(self):
        with pytest.raises(ConnectionUnavailable):
            upload(None, "default", "ci1", b"image-bytes")
