"""Load a ScanConfig from a YAML file."""
import os
import logging
import yaml
from typing import Any, Dict, Optional

from core.config import ScanConfig, config_fields
from core.errors import ConfigError

logger = logging.getLogger(__name__)


def load_config_file(config_file: str) -> Dict[str, Any]:
    """
    Read raw settings from a YAML file.

    Args:
        config_file: Path to the YAML configuration file

    Returns:
        Dictionary of settings (empty if the file is empty)
    """
    if not os.path.exists(config_file):
        raise ConfigError(f"Config file not found: {config_file}")

    with open(config_file, 'r') as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file} must contain a mapping of settings")
    return data


def config_from_dict(data: Dict[str, Any], base_url: Optional[str] = None) -> ScanConfig:
    """Build a validated ScanConfig; ``base_url`` overrides the value in ``data``."""
    known = set(config_fields())
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(sorted(unknown))}")

    settings = {k: v for k, v in data.items() if k in known}
    if base_url:
        settings["base_url"] = base_url
    if "base_url" not in settings:
        raise ConfigError("base_url is required")

    for key in ("proxy_urls", "exclude_extractors"):
        if isinstance(settings.get(key), str):
            settings[key] = [settings[key]]

    try:
        return ScanConfig(**settings)
    except TypeError as e:
        raise ConfigError(f"Invalid config value: {e}") from e


def load_config(config_file: str, base_url: Optional[str] = None) -> ScanConfig:
    return config_from_dict(load_config_file(config_file), base_url=base_url)
