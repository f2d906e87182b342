"""Layered configuration manager (defaults, user, project)."""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
from .paths import DEFAULTS_PATH, get_user_config_path, get_project_config_path
from ..utils.errors import ConfigError
from ..utils.logging import get_logger

logger = get_logger("config.manager")


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in config file {path}: {e}")
    except OSError as e:
        raise ConfigError(f"Error reading config file {path}: {e}")
    
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a dictionary")
    return data


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load full config tree.
    
    Packaged defaults are overridden by the user config, which is overridden
    by the project config. An explicit config_path replaces the project tier.
    
    Returns:
        Configuration dictionary
    """
    config = _read_yaml(DEFAULTS_PATH)
    
    user_config_path = get_user_config_path()
    if user_config_path.exists():
        _deep_merge(config, _read_yaml(user_config_path))
        logger.info(f"Loaded user config from {user_config_path}")
    
    if config_path is not None:
        override_path = Path(config_path)
        if not override_path.exists():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        override_path = get_project_config_path()
    
    if override_path:
        _deep_merge(config, _read_yaml(override_path))
        logger.info(f"Loaded project config from {override_path}")
    
    return config


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
