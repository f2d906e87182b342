"""converge - Declarative infrastructure reconciliation engine."""

import threading
from typing import Optional
from .ingest.document_loader import load_document
from .ingest.document_normalizer import normalize_document
from .ingest.models import DesiredState
from .graph.dependency_graph import DependencyGraph
from .diff.differ import Differ
from .plan.planner import build_plan
from .plan.models import ExecutionPlan
from .execute.executor import Executor
from .execute.models import ApplyResult, PlanStatus
from .outputs import resolve_outputs
from .providers.base import Provider
from .state.refresh import refresh_snapshot
from .state.store import StateStore
from .utils.logging import setup_logging, get_logger
from .utils.errors import ConvergeError, ReferenceResolutionError

__version__ = "0.1.0"

__all__ = ["load_desired_state", "build_graph", "plan_changes", "apply_changes"]

setup_logging()
logger = get_logger("converge")


def load_desired_state(document_path: str) -> DesiredState:
    """Load and normalize a desired-state document."""
    return normalize_document(load_document(document_path))


def build_graph(desired: DesiredState, provider: Provider) -> DependencyGraph:
    """Build the resource graph, rejecting kinds the provider does not support."""
    graph = DependencyGraph(supported_kinds=provider.schemas.keys())
    graph.build_from_resources(desired.resources)
    return graph


def plan_changes(
    desired: DesiredState,
    store: StateStore,
    provider: Provider,
    destroy: bool = False,
    refresh: bool = False,
) -> ExecutionPlan:
    """
    Run graph build, diff and planning without touching infrastructure.

    Args:
        desired: Normalized desired state
        store: Recorded actual state
        provider: Provider supplying schemas (and reads when refreshing)
        destroy: Force every recorded resource to be destroyed
        refresh: Read recorded resources from the provider first. The reads
            go into a copy of the store; apply_changes writes them back

    Returns:
        ExecutionPlan
    """
    graph = build_graph(desired, provider) if not destroy else DependencyGraph()

    refreshed = None
    if refresh:
        refreshed = refresh_snapshot(store, provider)
        if refreshed.dropped:
            logger.info(f"Refresh found {len(refreshed.dropped)} vanished resources")
        store = refreshed.snapshot

    diff = Differ(provider).diff(graph, store, destroy_all=destroy)
    plan = build_plan(diff, graph, destroy=destroy)
    plan.refreshed = refreshed
    return plan


def apply_changes(
    desired: DesiredState,
    store: StateStore,
    provider: Provider,
    plan: Optional[ExecutionPlan] = None,
    parallelism: int = 4,
    call_timeout: Optional[float] = None,
    destroy: bool = False,
    refresh: bool = False,
    cancel_event: Optional[threading.Event] = None,
) -> ApplyResult:
    """
    Plan (unless a plan is given), execute and resolve outputs.

    State refreshed while planning is written back before the first step.
    Outputs are only resolved after a successful, non-destroy apply; an
    output that cannot be resolved is reported on the result as
    `output_error` instead of discarding what was applied.
    """
    try:
        if plan is None:
            plan = plan_changes(desired, store, provider, destroy=destroy, refresh=refresh)

        if plan.refreshed is not None:
            plan.refreshed.commit(store)

        executor = Executor(provider, store, parallelism=parallelism, call_timeout=call_timeout)
        result = executor.apply(plan, cancel_event=cancel_event)

        if result.status == PlanStatus.SUCCEEDED and not plan.destroy:
            try:
                result.outputs = resolve_outputs(desired.outputs, store)
            except ReferenceResolutionError as e:
                logger.error(f"Outputs could not be resolved: {e}")
                result.output_error = str(e)

        return result

    except ConvergeError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during apply: {e}", exc_info=True)
        raise ConvergeError(f"Apply failed: {e}") from e
