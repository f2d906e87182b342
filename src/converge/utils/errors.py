"""Custom exception classes for converge."""

from enum import Enum
from typing import List, Optional


class ConvergeError(Exception):
    """Base exception for all converge errors."""
    pass


class ConfigError(ConvergeError):
    """Raised when configuration is invalid or missing."""
    pass


class BuildError(ConvergeError):
    """Raised when the desired-state document cannot be turned into a resource graph."""
    pass


class DocumentLoadError(BuildError):
    """Raised when a desired-state document cannot be loaded or is malformed."""
    pass


class UnsupportedResourceKind(BuildError):
    """Raised when a declaration uses a resource type the provider does not know."""

    def __init__(self, address: str, kind: str):
        self.address = address
        self.kind = kind
        super().__init__(f"Unsupported resource kind '{kind}' for {address}")


class DuplicateResourceAddress(BuildError):
    """Raised when two declarations share the same address."""

    def __init__(self, address: str):
        self.address = address
        super().__init__(f"Duplicate resource address: {address}")


class UnknownReference(BuildError):
    """Raised when a reference or depends_on entry names an undeclared resource."""

    def __init__(self, address: str, target: str):
        self.address = address
        self.target = target
        super().__init__(f"{address} refers to undeclared resource {target}")


class DependencyCycle(BuildError):
    """Raised when the resource graph contains a cycle."""

    def __init__(self, path: List[str]):
        self.path = list(path)
        super().__init__(f"Dependency cycle: {' -> '.join(self.path)}")


class PlanError(ConvergeError):
    """Raised when no safe execution order exists for a diff."""
    pass


class UnresolvableReplacementOrder(PlanError):
    """Raised when replacement steps form a cycle that cannot be ordered."""

    def __init__(self, cycle: List[str]):
        self.cycle = list(cycle)
        super().__init__(f"Cannot order replacement steps: {' -> '.join(self.cycle)}")


class StateStoreCorrupt(ConvergeError):
    """Raised when recorded state cannot be trusted."""
    pass


class ReferenceResolutionError(ConvergeError):
    """Raised when a reference has no recorded value at execution time."""
    pass


class ProviderErrorKind(str, Enum):
    """Failure categories reported by providers."""
    TIMEOUT = "TIMEOUT"
    REJECTED = "REJECTED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"


class ProviderError(ConvergeError):
    """Raised by a provider operation; local to the resource it was called for."""

    def __init__(self, kind: ProviderErrorKind, message: str, address: Optional[str] = None):
        self.kind = ProviderErrorKind(kind)
        self.address = address
        super().__init__(message)
