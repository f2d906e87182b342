"""In-process provider that simulates a cloud API from a schema table."""

import json
import threading
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
import yaml
from .base import DestroyOutcome, Provider, ReplaceStrategy, ResourceSchema
from ..utils.errors import ConfigError, ProviderError, ProviderErrorKind
from ..utils.logging import get_logger

logger = get_logger("providers.simulated")

DEFAULT_SCHEMA_PATH = Path(__file__).parent / "schemas" / "aws.yaml"


def load_schemas(schema_path: Optional[str] = None) -> Dict[str, ResourceSchema]:
    """
    Load a schema table from YAML.
    
    Args:
        schema_path: Path to the schema file. If None, uses the packaged aws.yaml
        
    Returns:
        Schemas keyed by resource kind
        
    Raises:
        ConfigError: If the file is missing or malformed
    """
    path = Path(schema_path) if schema_path else DEFAULT_SCHEMA_PATH
    
    if not path.exists():
        raise ConfigError(f"Schema file not found: {path}")
    
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in schema file: {e}")
    
    kinds = data.get("kinds")
    if not isinstance(kinds, dict):
        raise ConfigError("Schema file must contain a 'kinds' mapping")
    
    schemas = {}
    for kind, spec in kinds.items():
        spec = spec or {}
        try:
            schemas[kind] = ResourceSchema(
                kind=kind,
                requires_replacement=spec.get("requires_replacement") or [],
                replace_strategy=ReplaceStrategy(spec.get("replace_strategy", ReplaceStrategy.DESTROY_BEFORE_CREATE)),
                id_prefix=spec.get("id_prefix", ""),
                computed=spec.get("computed") or {},
            )
        except ValueError as e:
            raise ConfigError(f"Invalid schema for {kind}: {e}")
    
    logger.debug(f"Loaded {len(schemas)} resource schemas from {path}")
    return schemas


class SimulatedProvider(Provider):
    """
    Keeps resources in memory, optionally mirrored to a JSON file.
    
    Identifiers are '<id_prefix>-<hex>'. Computed attributes from the schema are
    str.format templates that may use {id} and {seq}.
    """
    
    def __init__(self, schema_path: Optional[str] = None, backing_path: Optional[str] = None):
        self._schemas = load_schemas(schema_path)
        self._backing_path = Path(backing_path) if backing_path else None
        self._lock = threading.Lock()
        self._objects: Dict[str, Dict[str, Any]] = {}
        self._seq = 0
        if self._backing_path and self._backing_path.exists():
            self._load()
    
    @property
    def schemas(self) -> Dict[str, ResourceSchema]:
        return self._schemas
    
    def create(self, kind: str, attributes: Dict[str, Any]) -> Tuple[str, Dict[str, Any]]:
        schema = self._require_schema(kind)
        with self._lock:
            self._seq += 1
            prefix = schema.id_prefix or kind
            identifier = f"{prefix}-{uuid.uuid4().hex[:17]}"
            reported = dict(attributes)
            for name, template in schema.computed.items():
                reported[name] = self._render(template, identifier)
            reported["id"] = identifier
            self._objects[identifier] = {"kind": kind, "attributes": reported}
            self._save()
        logger.debug(f"Created {kind} {identifier}")
        return identifier, dict(reported)
    
    def read(self, kind: str, identifier: str) -> Dict[str, Any]:
        with self._lock:
            obj = self._find(kind, identifier)
            return dict(obj["attributes"])
    
    def update(self, kind: str, identifier: str, changed: Dict[str, Any]) -> Dict[str, Any]:
        schema = self._require_schema(kind)
        forbidden = [name for name in changed if schema.forces_replacement(name)]
        if forbidden:
            raise ProviderError(
                ProviderErrorKind.REJECTED,
                f"{kind} {identifier}: {', '.join(forbidden)} cannot be updated in place"
            )
        with self._lock:
            obj = self._find(kind, identifier)
            obj["attributes"].update(changed)
            self._save()
            return dict(obj["attributes"])
    
    def destroy(self, kind: str, identifier: str) -> DestroyOutcome:
        with self._lock:
            obj = self._objects.get(identifier)
            if obj is None or obj["kind"] != kind:
                return DestroyOutcome.NOT_FOUND
            del self._objects[identifier]
            self._save()
        logger.debug(f"Destroyed {kind} {identifier}")
        return DestroyOutcome.DESTROYED
    
    def _require_schema(self, kind: str) -> ResourceSchema:
        if kind not in self._schemas:
            raise ProviderError(ProviderErrorKind.REJECTED, f"Unknown resource kind: {kind}")
        return self._schemas[kind]
    
    def _find(self, kind: str, identifier: str) -> Dict[str, Any]:
        obj = self._objects.get(identifier)
        if obj is None or obj["kind"] != kind:
            raise ProviderError(ProviderErrorKind.NOT_FOUND, f"{kind} {identifier} does not exist")
        return obj
    
    def _render(self, template: Any, identifier: str) -> Any:
        if not isinstance(template, str):
            return template
        return template.format(id=identifier, seq=self._seq)
    
    def _load(self) -> None:
        try:
            with open(self._backing_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Cannot read simulated provider data {self._backing_path}: {e}")
        self._objects = data.get("objects", {})
        self._seq = data.get("seq", 0)
    
    def _save(self) -> None:
        if self._backing_path is None:
            return
        self._backing_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._backing_path, 'w', encoding='utf-8') as f:
            json.dump({"seq": self._seq, "objects": self._objects}, f, indent=2, sort_keys=True)
