"""Classify each resource as create / update / replace / destroy / no-op."""

from typing import Any, Dict, Optional
from .models import AttributeChange, DiffAction, DiffEntry, DiffSet
from ..graph.dependency_graph import DependencyGraph
from ..ingest.models import ResourceDeclaration
from ..ingest.references import UNKNOWN, resolve_attributes
from ..providers.base import Provider
from ..state.models import ActualStateRecord
from ..state.store import StateStore
from ..utils.errors import ReferenceResolutionError
from ..utils.logging import get_logger

logger = get_logger("diff.differ")

_PENDING_VALUES = (DiffAction.CREATE, DiffAction.REPLACE)


class Differ:
    """
    Compares desired resources with recorded state.
    
    The replacement table comes from the provider's schemas, so differs for
    different providers can coexist.
    """
    
    def __init__(self, provider: Provider):
        self.provider = provider
    
    def diff(self, graph: DependencyGraph, store: StateStore, destroy_all: bool = False) -> DiffSet:
        """
        Compute the diff set for one planning cycle.
        
        Args:
            graph: Desired-state resource graph
            store: Recorded actual state
            destroy_all: Schedule every recorded resource for destruction
                instead of comparing
        """
        entries: Dict[str, DiffEntry] = {}
        
        if not destroy_all:
            for address in graph.dependency_order():
                resource = graph.get_resource(address)
                entries[address] = self._diff_resource(resource, store.get(address), entries, store)
        
        for address in store.addresses():
            if address in entries:
                continue
            record = store.get(address)
            if record is None:
                continue
            entries[address] = DiffEntry(
                address=address,
                type=record.type,
                action=DiffAction.DESTROY,
                changes={name: AttributeChange(old=value, new=None) for name, value in record.applied.items()},
                prior=record,
            )
        
        diff_set = DiffSet(entries=entries)
        counts = diff_set.counts()
        logger.info(
            f"Diff: {counts['CREATE']} to create, {counts['UPDATE']} to update, "
            f"{counts['REPLACE']} to replace, {counts['DESTROY']} to destroy, "
            f"{counts['NO_OP']} unchanged"
        )
        return diff_set
    
    def _diff_resource(
        self,
        resource: ResourceDeclaration,
        record: Optional[ActualStateRecord],
        entries: Dict[str, DiffEntry],
        store: StateStore,
    ) -> DiffEntry:
        schema = self.provider.schema_for(resource.type)
        desired = resolve_attributes(resource.attributes, self._lookup(entries, store))
        
        if record is None:
            return DiffEntry(
                address=resource.address,
                type=resource.type,
                action=DiffAction.CREATE,
                changes={
                    name: AttributeChange(old=None, new=None if value is UNKNOWN else value, unknown=value is UNKNOWN)
                    for name, value in desired.items()
                },
                replace_strategy=schema.replace_strategy,
            )
        
        if record.type != resource.type:
            return DiffEntry(
                address=resource.address,
                type=resource.type,
                action=DiffAction.REPLACE,
                changes=_attribute_changes(record.applied, desired, lambda name: True),
                prior=record,
                replace_strategy=schema.replace_strategy,
                reason=f"type changed from {record.type}",
            )
        
        changes = _attribute_changes(record.applied, desired, schema.forces_replacement)
        if not changes:
            action = DiffAction.NO_OP
        elif any(change.forces_replacement for change in changes.values()):
            action = DiffAction.REPLACE
        else:
            action = DiffAction.UPDATE
        
        reason = None
        if action == DiffAction.REPLACE:
            forcing = sorted(name for name, change in changes.items() if change.forces_replacement)
            reason = f"{', '.join(forcing)} cannot be updated in place"
        
        logger.debug(f"{resource.address}: {action.value}")
        return DiffEntry(
            address=resource.address,
            type=resource.type,
            action=action,
            changes=changes,
            prior=record,
            replace_strategy=schema.replace_strategy,
            reason=reason,
        )
    
    @staticmethod
    def _lookup(entries: Dict[str, DiffEntry], store: StateStore):
        """Reference lookup for planning: pending values resolve to UNKNOWN."""
        def lookup(address: str, attribute: str) -> Any:
            entry = entries.get(address)
            if entry is not None and entry.action in _PENDING_VALUES:
                return UNKNOWN
            updating = entry is not None and entry.action == DiffAction.UPDATE
            if updating and attribute in entry.changes:
                change = entry.changes[attribute]
                return UNKNOWN if change.unknown else change.new
            record = store.get(address)
            if record is None:
                return UNKNOWN
            try:
                return record.attribute(attribute)
            except KeyError:
                if updating:
                    return UNKNOWN
                raise ReferenceResolutionError(f"{address} has no attribute '{attribute}'")
        return lookup


def _attribute_changes(old: Dict[str, Any], new: Dict[str, Any], forces_replacement) -> Dict[str, AttributeChange]:
    changes = {}
    for name in sorted(set(old) | set(new)):
        old_value = old.get(name)
        new_value = new.get(name)
        unknown = new_value is UNKNOWN
        if not unknown and name in old and name in new and old_value == new_value:
            continue
        changes[name] = AttributeChange(
            old=old_value,
            new=None if unknown else new_value,
            unknown=unknown,
            forces_replacement=forces_replacement(name),
        )
    return changes
