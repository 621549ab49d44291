"""Configuration models."""

from pydantic import BaseModel, Field, validator

from cidata.models.cloudinit import DEFAULT_POOL, DEFAULT_USER_DATA_PATH, DEFAULT_VOLID


class LibvirtConfig(BaseModel):
    """libvirt connection configuration."""
    uri: str = Field(default="qemu:///system")


class DefaultsConfig(BaseModel):
    """Defaults applied to seed volume specs that omit a field."""
    pool: str = Field(default=DEFAULT_POOL)
    volid: str = Field(default=DEFAULT_VOLID)
    user_data_path: str = Field(default=DEFAULT_USER_DATA_PATH)


class CidataConfig(BaseModel):
    """Main configuration model."""
    libvirt: LibvirtConfig = Field(default_factory=LibvirtConfig)
    log_level: str = Field(default="INFO")
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)

    @validator("log_level")
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}")
        return v.upper()

    class Config:
        """Pydantic config."""
        extra = "ignore"
