"""Order diff entries into batches of plan steps."""

from typing import Dict, Iterable, List, Optional
import networkx as nx
from .models import ExecutionPlan, PlanStep, StepOperation, step_key
from ..diff.models import DiffAction, DiffEntry, DiffSet
from ..graph.dependency_graph import DependencyGraph
from ..providers.base import ReplaceStrategy
from ..utils.errors import UnresolvableReplacementOrder
from ..utils.logging import get_logger

logger = get_logger("plan.planner")

_APPLY_OPERATIONS = {
    DiffAction.CREATE: StepOperation.CREATE,
    DiffAction.UPDATE: StepOperation.UPDATE,
    DiffAction.REPLACE: StepOperation.CREATE,
}


def _apply_key(entry: Optional[DiffEntry]) -> Optional[str]:
    if entry is None or entry.action not in _APPLY_OPERATIONS:
        return None
    return step_key(entry.address, _APPLY_OPERATIONS[entry.action])


def _destroy_key(entry: Optional[DiffEntry]) -> Optional[str]:
    if entry is None or entry.action not in (DiffAction.DESTROY, DiffAction.REPLACE):
        return None
    return step_key(entry.address, StepOperation.DESTROY)


def _add_step(step_graph: nx.DiGraph, entry: DiffEntry, operation: StepOperation) -> None:
    step = PlanStep(address=entry.address, type=entry.type, operation=operation, action=entry.action)
    step_graph.add_node(step.key, step=step)


def _add_edge(step_graph: nx.DiGraph, before: Optional[str], after: Optional[str], reason: str) -> None:
    if before is None or after is None or before == after:
        return
    step_graph.add_edge(before, after, reason=reason)


def _recorded_dependents(entries: Iterable[DiffEntry]) -> Dict[str, List[str]]:
    """Map address -> addresses whose recorded state depended on it."""
    dependents: Dict[str, List[str]] = {}
    for entry in entries:
        if entry.prior is None:
            continue
        for dependency in entry.prior.dependencies:
            dependents.setdefault(dependency, []).append(entry.address)
    return dependents


def build_plan(diff: DiffSet, graph: DependencyGraph, destroy: bool = False) -> ExecutionPlan:
    """
    Build the execution plan for a diff set.
    
    Ordering rules:
      - a dependency's create/update runs before its dependents' create/update
      - a recorded dependent is destroyed before the resource it depended on
      - a replacement runs its destroy and create halves in the order the
        provider declared for the kind; with create_before_destroy the old
        object is destroyed only after dependents were applied
      - a resource is destroyed only after recorded dependents that stay were
        applied
    
    Raises:
        UnresolvableReplacementOrder: If these rules form a cycle
    """
    entries = diff.entries
    step_graph = nx.DiGraph()
    
    for entry in diff.changed():
        if entry.action in _APPLY_OPERATIONS:
            _add_step(step_graph, entry, _APPLY_OPERATIONS[entry.action])
        if entry.action in (DiffAction.DESTROY, DiffAction.REPLACE):
            _add_step(step_graph, entry, StepOperation.DESTROY)
        
        if entry.action == DiffAction.REPLACE:
            if entry.replace_strategy == ReplaceStrategy.CREATE_BEFORE_DESTROY:
                _add_edge(step_graph, _apply_key(entry), _destroy_key(entry), "create_before_destroy")
            else:
                _add_edge(step_graph, _destroy_key(entry), _apply_key(entry), "destroy_before_create")
    
    for address in graph.dependency_order():
        dependent_key = _apply_key(entries.get(address))
        if dependent_key is None:
            continue
        for dependency in graph.get_dependencies(address):
            _add_edge(step_graph, _apply_key(entries.get(dependency)), dependent_key, "dependency")
    
    recorded_dependents = _recorded_dependents(entries.values())
    for entry in diff.changed():
        destroy_key = _destroy_key(entry)
        if destroy_key is None:
            continue
        
        for dependent in recorded_dependents.get(entry.address, []):
            dependent_entry = entries.get(dependent)
            dependent_destroy = _destroy_key(dependent_entry)
            if dependent_destroy is not None:
                _add_edge(step_graph, dependent_destroy, destroy_key, "destroy_order")
            elif entry.action == DiffAction.DESTROY:
                _add_edge(step_graph, _apply_key(dependent_entry), destroy_key, "release_before_destroy")
        
        if entry.replace_strategy == ReplaceStrategy.CREATE_BEFORE_DESTROY and entry.action == DiffAction.REPLACE:
            for dependent in graph.get_dependents(entry.address):
                _add_edge(step_graph, _apply_key(entries.get(dependent)), destroy_key, "create_before_destroy")
    
    if not nx.is_directed_acyclic_graph(step_graph):
        cycle_edges = nx.find_cycle(step_graph)
        cycle = [edge[0] for edge in cycle_edges] + [cycle_edges[0][0]]
        logger.error(f"Plan steps form a cycle: {' -> '.join(cycle)}")
        raise UnresolvableReplacementOrder(cycle)
    
    batches = [
        [step_graph.nodes[key]["step"] for key in sorted(generation)]
        for generation in nx.topological_generations(step_graph)
    ]
    
    logger.info(f"Planned {step_graph.number_of_nodes()} steps in {len(batches)} batches")
    return ExecutionPlan(diff=diff, graph=graph, step_graph=step_graph, batches=batches, destroy=destroy)
