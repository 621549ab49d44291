"""Render cloud-init files and package them into an ISO9660 seed image."""

import io
import logging
import re
import tempfile
from pathlib import Path
from typing import Any, Dict

import pycdlib
from pycdlib.pycdlibexception import PyCdlibException
from ruamel.yaml import YAML

from cidata.errors import PackagingError
from cidata.models.cloudinit import CloudInitDefinition
from cidata.utils.hashing import decode_user_data


logger = logging.getLogger(__name__)

CLOUD_CONFIG_HEADER = "#cloud-config"
# Identifies user-data generated from ssh_authorized_keys so read-back is exact.
SSH_KEYS_MARKER = "# cidata: ssh-authorized-keys"

_VOLID_RE = re.compile(r"^[A-Za-z0-9_.-]{1,32}$")


def _yaml() -> YAML:
    yaml = YAML()
    yaml.preserve_quotes = True
    yaml.width = 4096
    return yaml


def _dump(data: Dict[str, Any]) -> str:
    stream = io.StringIO()
    _yaml().dump(data, stream)
    return stream.getvalue()


def render_meta_data(definition: CloudInitDefinition) -> str:
    """Render the meta-data document."""
    meta_data: Dict[str, Any] = {"instance-id": definition.instance_id}
    if definition.metadata.local_hostname:
        meta_data["local-hostname"] = definition.metadata.local_hostname
    return _dump(meta_data)


def render_user_data(definition: CloudInitDefinition) -> str:
    """Render the user-data document.

    Free-form content wins over SSH keys and is stored decoded, so content
    supplied as base64 is never double encoded inside the image.
    """
    if definition.user_data_content:
        return decode_user_data(definition.user_data_content, definition.user_data_encoding)

    body = _dump({"ssh_authorized_keys": list(definition.user_data.ssh_authorized_keys)})
    return f"{CLOUD_CONFIG_HEADER}\n{SSH_KEYS_MARKER}\n{body}"


def _iso9660_name(filename: str) -> str:
    """Level 1 ISO9660 name for a file at the image root."""
    stem = re.sub(r"[^A-Z0-9_]", "", filename.upper())[:8] or "FILE"
    return f"/{stem}.;1"


def _check_definition(definition: CloudInitDefinition):
    if not _VOLID_RE.match(definition.volid):
        raise PackagingError(f"Invalid volume label: {definition.volid!r}")
    for path in (definition.meta_data_path, definition.user_data_path):
        if not path or "/" in path or path in (".", ".."):
            raise PackagingError(f"Invalid file name for seed image: {path!r}")
    if definition.user_data_path == definition.meta_data_path:
        raise PackagingError(
            f"user_data_path must differ from {definition.meta_data_path!r}"
        )


def _write_image(staging: Path, definition: CloudInitDefinition, files: Dict[str, str]) -> bytes:
    iso = pycdlib.PyCdlib()
    iso.new(interchange_level=1, vol_ident=definition.volid, joliet=3, rock_ridge="1.09")
    try:
        for filename, content in files.items():
            staged = staging / filename
            staged.write_bytes(content.encode("utf-8"))
            iso.add_file(
                str(staged),
                _iso9660_name(filename),
                rr_name=filename,
                joliet_path=f"/{filename}",
            )

        output = staging / f"{definition.volid}.iso"
        iso.write(str(output))
    finally:
        iso.close()

    return output.read_bytes()


def package(definition: CloudInitDefinition) -> bytes:
    """Build the seed image for a definition and return its bytes."""
    _check_definition(definition)

    files = {
        definition.meta_data_path: render_meta_data(definition),
        definition.user_data_path: render_user_data(definition),
    }

    try:
        with tempfile.TemporaryDirectory(prefix="cidata-") as staging:
            image = _write_image(Path(staging), definition, files)
    except (PyCdlibException, OSError) as e:
        raise PackagingError(f"Failed to build seed image for {definition.name}: {e}") from e

    logger.debug(f"Packaged seed image for {definition.name} ({len(image)} bytes)")
    return image
