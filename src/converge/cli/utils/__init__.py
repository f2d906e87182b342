"""CLI utilities package."""

import logging
import signal
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Optional
import click
from ...config import load_engine_config
from ...providers.base import Provider, load_provider
from ...state.store import JsonStateStore
from ...utils.logging import get_logger, parse_level, setup_logging
from .file_resolver import resolve_file_path

logger = get_logger("cli.utils")


@dataclass
class Runtime:
    """Everything a command needs, built from config and global options."""
    config: Dict[str, Any]
    provider: Provider
    store: JsonStateStore

    @property
    def parallelism(self) -> int:
        return self.config["executor"]["parallelism"]

    @property
    def call_timeout(self) -> Optional[float]:
        return self.config["executor"].get("call_timeout")

    @property
    def refresh(self) -> bool:
        return bool(self.config["executor"].get("refresh", False))


def build_runtime(ctx: click.Context) -> Runtime:
    """
    Load config, then open the state store and instantiate the provider.
    
    Raises:
        ConvergeError: If config, provider or state cannot be loaded
    """
    options = ctx.obj or {}
    config = load_engine_config(options.get("config_path"))
    
    setup_logging(logging.DEBUG if options.get("verbose") else parse_level(config["logging"]["level"]))
    
    state_path = options.get("state_path") or config["state"]["path"]
    store = JsonStateStore(state_path)
    
    provider_config = config["provider"]
    provider = load_provider(provider_config["class"], **(provider_config.get("options") or {}))
    logger.debug(f"Using provider {provider_config['class']} and state {state_path}")
    
    return Runtime(config=config, provider=provider, store=store)


@contextmanager
def cancel_on_interrupt() -> Iterator[threading.Event]:
    """Turn the first Ctrl-C into a cancellation request between batches."""
    cancel_event = threading.Event()
    
    def _handler(signum, frame):
        if cancel_event.is_set():
            raise KeyboardInterrupt
        click.echo("Interrupt received, stopping after the running batch (press again to abort)", err=True)
        cancel_event.set()
    
    if threading.current_thread() is not threading.main_thread():
        yield cancel_event
        return
    
    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield cancel_event
    finally:
        signal.signal(signal.SIGINT, previous)


def format_error(message: str, suggestion: Optional[str] = None) -> str:
    """
    Format error message with optional suggestion.
    
    Args:
        message: Error message
        suggestion: Optional suggestion or help text
        
    Returns:
        Formatted error string
    """
    error = f"Error: {message}"
    if suggestion:
        error += f"\nTip: {suggestion}"
    return error


__all__ = ["Runtime", "build_runtime", "cancel_on_interrupt", "format_error", "resolve_file_path"]
