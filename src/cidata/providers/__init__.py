"""Resource providers for cidata."""

from cidata.providers.base import BaseProvider, ProviderStatus
from cidata.providers.cloudinit import CloudInitProvider

__all__ = [
    "BaseProvider",
    "ProviderStatus",
    "CloudInitProvider",
]
