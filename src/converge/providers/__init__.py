"""Provider interface and bundled providers."""

from .base import DestroyOutcome, Provider, ReplaceStrategy, ResourceSchema, load_provider
from .simulated import SimulatedProvider, load_schemas

__all__ = [
    "DestroyOutcome",
    "Provider",
    "ReplaceStrategy",
    "ResourceSchema",
    "SimulatedProvider",
    "load_provider",
    "load_schemas",
]
