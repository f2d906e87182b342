"""Logging setup for converge: one stderr handler on the 'converge' logger."""

import logging
import sys
from typing import Optional, Union

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_HANDLER_NAME = "converge-stderr"


def parse_level(level: Union[int, str]) -> int:
    """Accept a level number or a level name such as 'debug' or 'WARNING'."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(level: Union[int, str] = logging.WARNING, format_string: Optional[str] = None) -> logging.Logger:
    """
    Configure the 'converge' logger.
    
    Calling it again replaces level and format on the existing handler, so the
    CLI can tighten or loosen logging once the configuration is known.
    
    Args:
        level: Level number or name (default: WARNING)
        format_string: Custom format string (optional)
    
    Returns:
        The 'converge' logger
    """
    logger = logging.getLogger("converge")
    logger.setLevel(parse_level(level))
    
    handler = next((h for h in logger.handlers if h.get_name() == _HANDLER_NAME), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.set_name(_HANDLER_NAME)
        logger.addHandler(handler)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"converge.{name}")
