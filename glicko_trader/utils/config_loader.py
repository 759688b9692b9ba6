# glicko_trader/utils/config_loader.py
"""
Configuration loading utilities with environment variable support.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from ..core.errors import ConfigurationError
from ..models.config import AppConfig


DEFAULT_CONFIG_PATH = "configs/config.yaml"


def substitute_env_vars(config_str: str) -> str:
    """
    Substitute environment variables in config string.

    Args:
        config_str: Configuration string with ${VAR_NAME} placeholders

    Returns:
        Configuration string with environment variables substituted
    """
    pattern = r'\$\{([^}]+)\}'

    def replacer(match):
        var_name = match.group(1)
        # VAR_NAME:default_value
        if ':' in var_name:
            var_name, default_value = var_name.split(':', 1)
            return os.getenv(var_name, default_value)
        else:
            return os.getenv(var_name, match.group(0))  # Keep original if not found

    return re.sub(pattern, replacer, config_str)


def _read_yaml_mapping(config_path: str) -> Dict[str, Any]:
    """Read YAML file into a mapping with environment substitution."""
    config_file = Path(config_path)

    if not config_file.exists():
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r', encoding='utf-8') as f:
        config_content = f.read()

    try:
        config_data = yaml.safe_load(substitute_env_vars(config_content))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}") from e

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError("Configuration file must contain a YAML mapping")

    return config_data


def load_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load configuration from a YAML file.

    Args:
        config_path: Path to the configuration file; DEFAULT_CONFIG_PATH when
            omitted, falling back to defaults if that file does not exist

    Returns:
        Parsed configuration object

    Raises:
        ConfigurationError: If the file is missing, not YAML or invalid
    """
    if config_path is None:
        if not Path(DEFAULT_CONFIG_PATH).exists():
            return get_default_config()
        config_path = DEFAULT_CONFIG_PATH

    config_data = _read_yaml_mapping(config_path)
    try:
        return AppConfig.from_dict(config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Error loading configuration from {config_path}: {e}") from e


def save_config(config: AppConfig, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Configuration object to save
        config_path: Target path
    """
    path_obj = Path(config_path)
    path_obj.parent.mkdir(parents=True, exist_ok=True)

    config_data = config.model_dump(mode='json', exclude_none=True)

    with open(path_obj, 'w', encoding='utf-8') as f:
        yaml.safe_dump(config_data, f, default_flow_style=False, indent=2, sort_keys=False)


def get_default_config() -> AppConfig:
    """
    Get default configuration for development/testing.

    Returns:
        Default configuration object
    """
    return AppConfig()
