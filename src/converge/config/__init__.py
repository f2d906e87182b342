"""Configuration module: load and validate engine settings."""

from typing import Dict, Any, Optional
from ..utils.errors import ConfigError
from ..utils.logging import get_logger, parse_level
from .manager import load_config
from .paths import get_user_config_path, get_project_config_path

logger = get_logger("config")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_engine_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate the engine configuration.
    
    Args:
        config_path: Optional explicit config file overriding the project tier
        
    Returns:
        Configuration dictionary
        
    Raises:
        ConfigError: If config cannot be loaded or has invalid values
    """
    config = load_config(config_path)
    validation_issues = []
    
    for section in ("state", "executor", "provider", "logging"):
        if not isinstance(config.get(section), dict):
            validation_issues.append(f"{section} is not a dict")
    
    if validation_issues:
        raise ConfigError(f"Invalid configuration: {'; '.join(validation_issues)}")
    
    if not isinstance(config["state"].get("path"), str) or not config["state"]["path"]:
        validation_issues.append("state.path must be a non-empty string")
    
    executor = config["executor"]
    parallelism = executor.get("parallelism")
    if isinstance(parallelism, bool) or not isinstance(parallelism, int) or parallelism < 1:
        validation_issues.append("executor.parallelism must be a positive integer")
    
    call_timeout = executor.get("call_timeout")
    if call_timeout is not None and (isinstance(call_timeout, bool) or not isinstance(call_timeout, (int, float)) or call_timeout <= 0):
        validation_issues.append("executor.call_timeout must be a positive number or null")
    
    if not isinstance(executor.get("refresh", False), bool):
        validation_issues.append("executor.refresh must be true or false")
    
    provider = config["provider"]
    if not isinstance(provider.get("class"), str) or ":" not in provider["class"]:
        validation_issues.append("provider.class must look like 'module:Class'")
    if not isinstance(provider.get("options") or {}, dict):
        validation_issues.append("provider.options must be a dict")
    
    try:
        parse_level(config["logging"].get("level", "WARNING"))
    except ValueError:
        validation_issues.append(f"logging.level must be one of {', '.join(_LOG_LEVELS)}")
    
    if validation_issues:
        raise ConfigError(f"Invalid configuration: {'; '.join(validation_issues)}")
    
    logger.debug(f"Configuration: {config}")
    return config


__all__ = ["load_engine_config", "load_config", "get_user_config_path", "get_project_config_path"]
