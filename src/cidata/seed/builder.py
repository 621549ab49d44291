"""Build cloud-init definitions from declarative inputs."""

import logging

from cidata.models.cloudinit import CloudInitDefinition, CloudInitSpec


logger = logging.getLogger(__name__)


def build(spec: CloudInitSpec) -> CloudInitDefinition:
    """Assemble a definition from a seed volume spec.

    When both free-form user-data and an SSH key are given the key is still
    recorded on the definition, but the packager only uses the user-data.
    """
    definition = CloudInitDefinition(
        name=spec.name,
        pool_name=spec.pool,
        volid=spec.volid,
        user_data_path=spec.user_data_path,
        user_data_content=spec.user_data,
        user_data_encoding=spec.user_data_encoding,
    )
    definition.metadata.local_hostname = spec.local_hostname or ""

    if spec.ssh_authorized_key:
        definition.user_data.ssh_authorized_keys.append(spec.ssh_authorized_key)

    if spec.user_data and spec.ssh_authorized_key:
        logger.warning(
            f"Both user_data and ssh_authorized_key specified for {spec.name}, "
            "will only use user_data"
        )

    logger.debug(f"Built cloud-init definition for {spec.name}")
    return definition
