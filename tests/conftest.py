"""Shared fixtures: a recording provider and desired-state builders."""

import itertools
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
import pytest
from converge.ingest.document_normalizer import normalize_document
from converge.ingest.models import DesiredState
from converge.providers.base import DestroyOutcome, Provider, ReplaceStrategy, ResourceSchema
from converge.state.store import MemoryStateStore
from converge.utils.errors import ProviderError, ProviderErrorKind


def default_schemas() -> Dict[str, ResourceSchema]:
    return {
        "network": ResourceSchema(kind="network", requires_replacement=["cidr"]),
        "subnet": ResourceSchema(kind="subnet", requires_replacement=["network_id", "cidr"]),
        "compute": ResourceSchema(kind="compute", requires_replacement=["image", "subnet_id"]),
        "firewall": ResourceSchema(
            kind="firewall",
            requires_replacement=["name"],
            replace_strategy=ReplaceStrategy.CREATE_BEFORE_DESTROY,
        ),
        "disk": ResourceSchema(kind="disk", requires_replacement=["size"]),
    }


class RecordingProvider(Provider):
    """Provider double that records calls and injects failures and delays."""
    
    def __init__(self, schemas: Optional[Dict[str, ResourceSchema]] = None):
        self._schemas = schemas or default_schemas()
        self.calls: List[Tuple[str, str, Any]] = []
        self.objects: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[Tuple[str, str], ProviderError] = {}
        self.delays: Dict[str, float] = {}
        self.before_call: Optional[Callable[[str, str], None]] = None
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
    
    @property
    def schemas(self) -> Dict[str, ResourceSchema]:
        return self._schemas
    
    def operations(self, operation: Optional[str] = None) -> List[Tuple[str, str, Any]]:
        return [call for call in self.calls if operation is None or call[0] == operation]
    
    def _enter(self, operation: str, kind: str, detail: Any) -> None:
        with self._lock:
            self.calls.append((operation, kind, detail))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        try:
            if self.before_call:
                self.before_call(operation, kind)
            if kind in self.delays:
                time.sleep(self.delays[kind])
            error = self.failures.get((operation, kind))
            if error is not None:
                raise error
        except BaseException:
            self._leave()
            raise
    
    def _leave(self) -> None:
        with self._lock:
            self.active -= 1
    
    def create(self, kind, attributes):
        self._enter("create", kind, dict(attributes))
        try:
            with self._lock:
                identifier = f"{kind}-{next(self._ids)}"
                reported = dict(attributes, id=identifier, arn=f"arn:test:{identifier}")
                self.objects[identifier] = reported
            return identifier, dict(reported)
        finally:
            self._leave()
    
    def read(self, kind, identifier):
        self._enter("read", kind, identifier)
        try:
            with self._lock:
                if identifier not in self.objects:
                    raise ProviderError(ProviderErrorKind.NOT_FOUND, f"{identifier} is gone")
                return dict(self.objects[identifier])
        finally:
            self._leave()
    
    def update(self, kind, identifier, changed):
        self._enter("update", kind, (identifier, dict(changed)))
        try:
            with self._lock:
                obj = self.objects.setdefault(identifier, {"id": identifier})
                obj.update(changed)
                return dict(obj)
        finally:
            self._leave()
    
    def destroy(self, kind, identifier):
        self._enter("destroy", kind, identifier)
        try:
            with self._lock:
                if self.objects.pop(identifier, None) is None:
                    return DestroyOutcome.NOT_FOUND
                return DestroyOutcome.DESTROYED
        finally:
            self._leave()


def make_desired(resources: List[Dict[str, Any]], outputs: Optional[Dict[str, Any]] = None) -> DesiredState:
    """Build a DesiredState from raw declarations."""
    return normalize_document({"resources": resources, "outputs": outputs or {}})


@pytest.fixture
def provider():
    return RecordingProvider()


@pytest.fixture
def store():
    return MemoryStateStore()


@pytest.fixture
def network_and_compute():
    """Network N and compute C referencing it."""
    return [
        {"type": "network", "name": "main", "attributes": {"cidr": "10.0.0.0/16"}},
        {
            "type": "compute",
            "name": "web",
            "attributes": {
                "image": "ami-1",
                "size": "small",
                "network_id": "${network.main.id}",
            },
        },
    ]


@pytest.fixture
def build_desired():
    return make_desired


@pytest.fixture
def provider_factory():
    return RecordingProvider
