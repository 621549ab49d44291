"""Configuration and seed spec loading."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError
from pydantic import ValidationError

from cidata.models.cloudinit import CloudInitSpec
from cidata.models.config import CidataConfig, DefaultsConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("./cidata.yaml")


def _read_yaml(file_path: Path) -> Dict[str, Any]:
    """Read and parse a YAML mapping."""
    yaml = YAML()
    yaml.preserve_quotes = True
    try:
        data = yaml.load(file_path.read_text())
    except YAMLError as e:
        raise ValueError(f"Invalid YAML in {file_path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Expected a mapping in {file_path}")
    return dict(data)


def load_config(config_path: Optional[Union[str, Path]] = None) -> CidataConfig:
    """Load the main configuration, falling back to defaults when absent."""
    config_file = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not config_file.exists():
        if config_path:
            raise FileNotFoundError(f"Config not found: {config_file}")
        logger.debug(f"No config at {config_file}, using defaults")
        return CidataConfig()

    try:
        config = CidataConfig(**_read_yaml(config_file))
        logger.debug(f"Loaded config: {config_file}")
        return config
    except ValidationError as e:
        logger.error(f"Invalid config: {e}")
        raise


def load_spec(spec_path: Union[str, Path], defaults: Optional[DefaultsConfig] = None) -> CloudInitSpec:
    """Load a seed volume spec, filling omitted fields from ``defaults``."""
    defaults = defaults or DefaultsConfig()
    data = _read_yaml(Path(spec_path))

    for field in ("pool", "volid", "user_data_path"):
        data.setdefault(field, getattr(defaults, field))

    try:
        return CloudInitSpec(**data)
    except ValidationError as e:
        logger.error(f"Invalid seed spec {spec_path}: {e}")
        raise
