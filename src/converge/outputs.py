"""Resolve named output values against recorded state."""

from typing import Any, Dict
from .ingest.models import AttributeValue
from .ingest.references import resolve_value
from .state.store import StateStore
from .utils.errors import ReferenceResolutionError
from .utils.logging import get_logger

logger = get_logger("outputs")


def resolve_outputs(outputs: Dict[str, AttributeValue], store: StateStore) -> Dict[str, Any]:
    """
    Resolve every output against the store.
    
    Raises:
        ReferenceResolutionError: If an output refers to a resource or
            attribute that is not recorded
    """
    def lookup(address: str, attribute: str) -> Any:
        record = store.get(address)
        if record is None:
            raise ReferenceResolutionError(f"Output refers to {address}, which has no recorded state")
        try:
            return record.attribute(attribute)
        except KeyError:
            raise ReferenceResolutionError(f"Output refers to unknown attribute {address}.{attribute}")
    
    resolved = {name: resolve_value(value, lookup) for name, value in outputs.items()}
    logger.debug(f"Resolved {len(resolved)} outputs")
    return resolved
