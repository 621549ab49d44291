"""Read seed images back from storage and reconstruct their definitions."""

import io
import logging
import posixpath
from typing import Any, Dict, List, Optional, Tuple

import pycdlib
from pycdlib.pycdlibexception import PyCdlibException
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from cidata.backend.base import StorageBackend
from cidata.errors import ConnectionUnavailable, ParseError
from cidata.models.cloudinit import (
    DEFAULT_USER_DATA_PATH,
    META_DATA_PATH,
    CloudInitDefinition,
)
from cidata.seed.packager import CLOUD_CONFIG_HEADER, SSH_KEYS_MARKER


logger = logging.getLogger(__name__)

# System area plus the primary volume descriptor
_MIN_IMAGE_SIZE = 17 * 2048

# Files a NoCloud seed may carry besides meta-data and user-data
_OTHER_SEED_FILES = {"network-config", "vendor-data"}


def _load_yaml(content: str) -> Any:
    yaml = YAML()
    yaml.preserve_quotes = True
    return yaml.load(content)


def _read_files(image: bytes) -> Tuple[Dict[str, str], str]:
    """Return the root files of an ISO image and its volume label."""
    if len(image) < _MIN_IMAGE_SIZE:
        raise ParseError(f"Image too small to be ISO9660 ({len(image)} bytes)")

    iso = pycdlib.PyCdlib()
    try:
        iso.open_fp(io.BytesIO(image))
    except PyCdlibException as e:
        raise ParseError(f"Not a valid ISO9660 image: {e}") from e

    try:
        if iso.has_rock_ridge():
            path_kwarg, rockridge = "rr_path", True
        elif iso.has_joliet():
            path_kwarg, rockridge = "joliet_path", False
        else:
            raise ParseError("Seed image has neither Rock Ridge nor Joliet file names")

        files: Dict[str, str] = {}
        for child in iso.list_children(**{path_kwarg: "/"}):
            if child.is_dot() or child.is_dotdot() or child.is_dir():
                continue
            path = iso.full_path_from_dirrecord(child, rockridge=rockridge)
            out = io.BytesIO()
            iso.get_file_from_iso_fp(out, **{path_kwarg: path})
            files[posixpath.basename(path)] = out.getvalue().decode("utf-8")

        volid = iso.pvd.volume_identifier.decode("ascii", "replace").strip(" \x00")
    except PyCdlibException as e:
        raise ParseError(f"Failed to read seed image: {e}") from e
    except UnicodeDecodeError as e:
        raise ParseError(f"Seed image file is not UTF-8 text: {e}") from e
    finally:
        iso.close()

    return files, volid


def _parse_meta_data(content: str) -> Dict[str, Any]:
    try:
        data = _load_yaml(content)
    except YAMLError as e:
        raise ParseError(f"Invalid meta-data: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ParseError("meta-data is not a mapping")
    return dict(data)


def _ssh_keys_from(document: Any) -> Optional[List[str]]:
    """Keys of a document holding nothing but ``ssh_authorized_keys``."""
    if not isinstance(document, dict) or list(document.keys()) != ["ssh_authorized_keys"]:
        return None
    keys = document["ssh_authorized_keys"]
    if keys is None:
        return []
    if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
        return None
    return [str(k) for k in keys]


def _generated_keys(content: str) -> Optional[List[str]]:
    """SSH keys of user-data written from keys by ``render_user_data``, None otherwise."""
    if content.splitlines()[:2] != [CLOUD_CONFIG_HEADER, SSH_KEYS_MARKER]:
        return None
    try:
        return _ssh_keys_from(_load_yaml(content))
    except YAMLError as e:
        raise ParseError(f"Invalid generated user-data: {e}") from e


def classify_user_data(content: str) -> Tuple[List[str], str]:
    """Split user-data into (ssh keys, free-form content).

    Content generated from SSH keys carries a marker line and is classified
    exactly. A marked document with any other key is free-form. Without the
    marker a cloud-config whose only key is ``ssh_authorized_keys`` is assumed
    to be key-only as well.
    """
    keys = _generated_keys(content)
    if keys is not None:
        return keys, ""

    lines = content.splitlines()
    if lines and lines[0].strip() == CLOUD_CONFIG_HEADER:
        try:
            keys = _ssh_keys_from(_load_yaml(content))
        except YAMLError:
            keys = None
        if keys:
            logger.debug("user-data looks key-only, reading it as ssh_authorized_keys")
            return keys, ""

    return [], content


def _find_user_data(files: Dict[str, str]) -> str:
    if DEFAULT_USER_DATA_PATH in files:
        return DEFAULT_USER_DATA_PATH
    candidates = sorted(
        name for name in files if name != META_DATA_PATH and name not in _OTHER_SEED_FILES
    )
    if not candidates:
        raise ParseError("Seed image has no user-data file")
    return candidates[0]


def parse_image(image: bytes) -> CloudInitDefinition:
    """Reconstruct a definition from seed image bytes.

    Name and pool are not stored in the image and are left at their defaults.
    User-data that only looks key-only keeps both its keys and its content.
    """
    files, volid = _read_files(image)
    if META_DATA_PATH not in files:
        raise ParseError("Seed image has no meta-data file")
    user_data_path = _find_user_data(files)

    meta_data = _parse_meta_data(files[META_DATA_PATH])
    text = files[user_data_path]
    keys, content = classify_user_data(text)
    if not content and _generated_keys(text) is None:
        # Only generated user-data may be dropped, anything else is kept verbatim
        content = text

    definition = CloudInitDefinition(
        volid=volid,
        user_data_path=user_data_path,
        user_data_content=content,
        user_data_encoding="raw",
    )
    definition.metadata.local_hostname = str(meta_data.get("local-hostname") or "")
    definition.user_data.ssh_authorized_keys.extend(keys)
    return definition


def fetch_and_parse(backend: StorageBackend, volume_key: str) -> Tuple[CloudInitDefinition, str]:
    """Download the volume behind ``volume_key`` and parse it.

    Returns the reconstructed definition and the name of its pool.
    """
    if backend is None:
        raise ConnectionUnavailable("No storage backend connection available")

    volume = backend.lookup_volume_by_key(volume_key)
    image = backend.download_bytes(volume)
    logger.debug(f"Downloaded {len(image)} bytes from {volume.pool}/{volume.name}")

    definition = parse_image(image)
    definition.name = volume.name
    definition.pool_name = volume.pool
    return definition, volume.pool
