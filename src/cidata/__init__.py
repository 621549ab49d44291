"""
cidata - cloud-init seed volumes for libvirt.

Builds NoCloud seed images (meta-data and user-data on an ISO9660 volume),
uploads them into libvirt storage pools and reads them back to reconcile
declared state against what is stored.
"""

__version__ = "1.0.0"

# Re-export key components for easier access
from cidata.models.cloudinit import CloudInitSpec, CloudInitDefinition, ReconciledState
from cidata.models.config import CidataConfig
from cidata.providers.cloudinit import CloudInitProvider
from cidata.utils.hashing import fingerprint

__all__ = [
    "CidataConfig",
    "CloudInitSpec",
    "CloudInitDefinition",
    "ReconciledState",
    "CloudInitProvider",
    "fingerprint",
]
