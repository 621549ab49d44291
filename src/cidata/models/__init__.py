"""Pydantic models for configuration and seed volumes."""

from cidata.models.config import CidataConfig, LibvirtConfig, DefaultsConfig
from cidata.models.cloudinit import (
    CloudInitSpec,
    CloudInitDefinition,
    CloudInitMetadata,
    CloudInitUserData,
    ReconciledState,
)

__all__ = [
    "CidataConfig",
    "LibvirtConfig",
    "DefaultsConfig",
    "CloudInitSpec",
    "CloudInitDefinition",
    "CloudInitMetadata",
    "CloudInitUserData",
    "ReconciledState",
]
