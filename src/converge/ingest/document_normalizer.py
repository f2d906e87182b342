"""Translate raw document data into typed resource declarations."""

from typing import Any, Dict, List
from pydantic import ValidationError
from .models import DesiredState, ResourceDeclaration
from .references import ADDRESS_PATTERN, parse_value
from ..utils.errors import DocumentLoadError
from ..utils.logging import get_logger

logger = get_logger("ingest.document_normalizer")


def _normalize_depends_on(raw: Any, address: str) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        return [raw]
    if not isinstance(raw, list) or not all(isinstance(dep, str) for dep in raw):
        raise DocumentLoadError(f"depends_on of {address} must be a list of addresses")
    return [dep.strip() for dep in raw]


def _normalize_declaration(raw: Dict[str, Any], idx: int) -> ResourceDeclaration:
    kind = str(raw["type"]).strip()
    name = str(raw["name"]).strip()
    address = f"{kind}.{name}"
    if not ADDRESS_PATTERN.fullmatch(address):
        raise DocumentLoadError(f"Invalid resource address at index {idx}: {address}")
    
    attributes = raw.get("attributes") or {}
    if not isinstance(attributes, dict):
        raise DocumentLoadError(f"attributes of {address} must be a mapping")
    
    try:
        return ResourceDeclaration(
            type=kind,
            name=name,
            attributes={str(key): parse_value(value) for key, value in attributes.items()},
            depends_on=_normalize_depends_on(raw.get("depends_on"), address),
        )
    except ValidationError as e:
        raise DocumentLoadError(f"Invalid resource at index {idx}: {e}")


def normalize_document(data: Dict[str, Any]) -> DesiredState:
    """
    Normalize a loaded document.
    
    Duplicate addresses are kept here; the graph builder rejects them.
    """
    resources = [
        _normalize_declaration(raw, idx)
        for idx, raw in enumerate(data.get("resources") or [])
    ]
    outputs = {
        str(name): parse_value(value)
        for name, value in (data.get("outputs") or {}).items()
    }
    
    logger.debug(f"Normalized {len(resources)} resources and {len(outputs)} outputs")
    return DesiredState(resources=resources, outputs=outputs)
