"""Abstract provider interface consumed by the differ and the executor."""

import importlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Tuple
from pydantic import BaseModel, Field
from ..utils.errors import ConfigError


class ReplaceStrategy(str, Enum):
    """Order of the two halves of a replacement."""
    DESTROY_BEFORE_CREATE = "destroy_before_create"
    CREATE_BEFORE_DESTROY = "create_before_destroy"


class DestroyOutcome(str, Enum):
    """Result of a destroy call."""
    DESTROYED = "DESTROYED"
    NOT_FOUND = "NOT_FOUND"


class ResourceSchema(BaseModel):
    """Static per-kind knowledge a provider exposes to the engine."""
    kind: str = Field(..., description="Resource kind tag")
    requires_replacement: List[str] = Field(
        default_factory=list,
        description="Attributes that cannot be changed in place"
    )
    replace_strategy: ReplaceStrategy = Field(default=ReplaceStrategy.DESTROY_BEFORE_CREATE)
    id_prefix: str = Field(default="", description="Prefix for generated identifiers")
    computed: Dict[str, Any] = Field(
        default_factory=dict,
        description="Attributes the provider reports without being asked"
    )

    def forces_replacement(self, attribute: str) -> bool:
        return attribute in self.requires_replacement


class Provider(ABC):
    """
    Capability boundary to the real infrastructure API.
    
    Every operation is a single bounded unit of work: when it returns or raises,
    no further side effects of that call may appear. Multi-step protocols such as
    submit-then-poll belong inside the call.
    
    Failures are reported by raising ProviderError with a ProviderErrorKind.
    """
    
    @property
    @abstractmethod
    def schemas(self) -> Dict[str, ResourceSchema]:
        """Schema table keyed by resource kind."""
        pass
    
    @abstractmethod
    def create(self, kind: str, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        """
        Create a resource.
        
        Returns:
            Tuple of (provider-assigned identifier, reported attributes)
        """
        pass
    
    @abstractmethod
    def read(self, kind: str, identifier: str) -> Dict[str, Any]:
        """Read current attributes; raises ProviderError(NOT_FOUND) if absent."""
        pass
    
    @abstractmethod
    def update(self, kind: str, identifier: str, changed: Dict[str, Any]) -> Dict[str, Any]:
        """Apply changed attributes in place and return reported attributes."""
        pass
    
    @abstractmethod
    def destroy(self, kind: str, identifier: str) -> DestroyOutcome:
        """Destroy a resource."""
        pass
    
    def supports(self, kind: str) -> bool:
        return kind in self.schemas
    
    def schema_for(self, kind: str) -> ResourceSchema:
        return self.schemas.get(kind) or ResourceSchema(kind=kind)


def load_provider(spec: str, **options: Any) -> Provider:
    """
    Instantiate a provider from a 'package.module:ClassName' path.
    
    Raises:
        ConfigError: If the path cannot be imported or is not a Provider
    """
    module_name, _, class_name = spec.partition(":")
    if not module_name or not class_name:
        raise ConfigError(f"Provider must be given as 'module:Class', got '{spec}'")
    
    try:
        module = importlib.import_module(module_name)
        provider_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ConfigError(f"Cannot load provider {spec}: {e}")
    
    if not isinstance(provider_class, type) or not issubclass(provider_class, Provider):
        raise ConfigError(f"{spec} is not a Provider implementation")
    
    return provider_class(**options)
