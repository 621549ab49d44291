"""Cloud-init seed volume models."""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


META_DATA_PATH = "meta-data"
DEFAULT_USER_DATA_PATH = "user-data"
DEFAULT_VOLID = "cidata"
DEFAULT_POOL = "default"


class CloudInitSpec(BaseModel):
    """Declarative inputs for a seed volume.

    Every field forces a new volume when changed; there is no in-place update.
    """
    name: str = Field(..., description="Name of the volume to create")
    pool: str = Field(default=DEFAULT_POOL, description="Storage pool name")
    local_hostname: Optional[str] = None
    ssh_authorized_key: Optional[str] = None
    volid: str = Field(default=DEFAULT_VOLID, description="ISO volume label")
    user_data_path: str = Field(default=DEFAULT_USER_DATA_PATH)
    user_data: str = Field(default="", description="Free-form user-data, raw or base64")
    user_data_encoding: Literal["auto", "raw", "base64"] = Field(default="auto")

    class Config:
        """Pydantic config."""
        extra = "forbid"


class CloudInitMetadata(BaseModel):
    """Content of the meta-data file."""
    local_hostname: str = ""


class CloudInitUserData(BaseModel):
    """Structured user-data rendered as a minimal cloud-config."""
    ssh_authorized_keys: List[str] = Field(default_factory=list)


class CloudInitDefinition(BaseModel):
    """In-memory representation of a seed image."""
    name: str = ""
    pool_name: str = DEFAULT_POOL
    metadata: CloudInitMetadata = Field(default_factory=CloudInitMetadata)
    user_data: CloudInitUserData = Field(default_factory=CloudInitUserData)
    user_data_content: str = ""
    user_data_encoding: Literal["auto", "raw", "base64"] = "auto"
    user_data_path: str = DEFAULT_USER_DATA_PATH
    meta_data_path: str = META_DATA_PATH
    volid: str = DEFAULT_VOLID

    @property
    def instance_id(self) -> str:
        """Instance id written to meta-data."""
        return f"iid-{self.name}"


class ReconciledState(BaseModel):
    """Fields re-derived from a stored seed volume."""
    volume_key: str
    name: str
    pool: str
    local_hostname: Optional[str] = None
    ssh_authorized_key: Optional[str] = None
    volid: str = DEFAULT_VOLID
    user_data_path: str = DEFAULT_USER_DATA_PATH
    user_data: str = Field(default="", description="Fingerprint of stored user-data not generated from SSH keys")
