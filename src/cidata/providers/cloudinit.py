"""Cloud-init seed volume provider."""

import logging
from typing import List, Optional

from cidata.backend.base import StorageBackend
from cidata.errors import (
    CidataError,
    ConnectionUnavailable,
    NotFoundError,
    PartialCreateError,
)
from cidata.models.cloudinit import CloudInitSpec, ReconciledState
from cidata.providers.base import BaseProvider, ProviderStatus
from cidata.seed import build, fetch_and_parse, package, upload
from cidata.utils.hashing import decode_user_data, fingerprint


logger = logging.getLogger(__name__)


class CloudInitProvider(BaseProvider):
    """Create, read and delete cloud-init seed volumes.

    A seed volume is identified only by the key the storage backend assigns
    to it. Nothing else is persisted between calls.
    """

    def __init__(self, backend: Optional[StorageBackend]):
        """Initialize the provider with a storage backend connection."""
        if backend is None:
            raise ConnectionUnavailable("The libvirt connection was nil.")
        self.backend = backend

    def create(self, spec: CloudInitSpec) -> str:
        """Build, package and upload a seed volume, returning its key.

        The new volume is read back once. A volume which cannot be parsed is
        reported as a partial create, and fields that read back differently
        are logged as a warning.
        """
        logger.debug(f"Creating cloud-init volume {spec.name}")

        definition = build(spec)
        image = package(definition)
        key = upload(self.backend, definition.pool_name, definition.name, image)
        logger.info(f"Created cloud-init volume {spec.name} in pool {spec.pool}: {key}")

        # The volume exists now, so its key must reach the caller even if read-back fails
        try:
            state = self.read(key)
        except CidataError as e:
            raise PartialCreateError(
                f"Volume {key} created but could not be read back: {e}", volume_key=key
            ) from e
        logger.debug(f"Read back {key}: {state}")
        drift = self.requires_replacement(spec, state)
        if drift:
            logger.warning(f"Volume {key} reads back with different {', '.join(drift)}")

        return key

    def read(self, volume_key: str) -> ReconciledState:
        """Reconstruct the declarative fields of a stored seed volume."""
        definition, pool = fetch_and_parse(self.backend, volume_key)

        keys = definition.user_data.ssh_authorized_keys
        content = definition.user_data_content
        return ReconciledState(
            volume_key=volume_key,
            name=definition.name,
            pool=pool,
            local_hostname=definition.metadata.local_hostname or None,
            ssh_authorized_key=keys[0] if len(keys) == 1 else None,
            volid=definition.volid,
            user_data_path=definition.user_data_path,
            user_data=fingerprint(content, "raw") if content else "",
        )

    def delete(self, volume_key: str) -> None:
        """Delete the seed volume behind ``volume_key``."""
        volume = self.backend.lookup_volume_by_key(volume_key)
        self.backend.delete_volume(volume)
        logger.info(f"Deleted cloud-init volume {volume.pool}/{volume.name}")

    def status(self, volume_key: str) -> ProviderStatus:
        """Check whether the volume behind ``volume_key`` still exists."""
        try:
            self.backend.lookup_volume_by_key(volume_key)
        except NotFoundError:
            return ProviderStatus.ABSENT
        except CidataError as e:
            logger.error(f"Error checking volume {volume_key}: {e}")
            return ProviderStatus.ERROR
        return ProviderStatus.PRESENT

    def requires_replacement(self, spec: CloudInitSpec, state: ReconciledState) -> List[str]:
        """Fields of ``spec`` that differ from the stored volume.

        Every field forces a new volume. User-data is compared by the
        fingerprint of the text that would be stored, so raw and base64 forms
        of the same content match. The SSH key is inert when user-data is set
        and is not compared then.
        """
        changed = []
        if spec.name != state.name:
            changed.append("name")
        if spec.pool != state.pool:
            changed.append("pool")
        if (spec.local_hostname or None) != state.local_hostname:
            changed.append("local_hostname")
        if spec.volid != state.volid:
            changed.append("volid")
        if spec.user_data_path != state.user_data_path:
            changed.append("user_data_path")

        if spec.user_data:
            stored = decode_user_data(spec.user_data, spec.user_data_encoding)
            if fingerprint(stored, "raw") != state.user_data:
                changed.append("user_data")
        else:
            if state.user_data:
                changed.append("user_data")
            if (spec.ssh_authorized_key or None) != state.ssh_authorized_key:
                changed.append("ssh_authorized_key")

        return changed
