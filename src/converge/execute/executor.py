"""Walk an execution plan and drive the provider."""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional
from .models import ApplyResult, PlanStatus, StepOutcome, StepStatus
from ..ingest.references import resolve_attributes
from ..plan.models import ExecutionPlan, PlanStep, StepOperation
from ..providers.base import DestroyOutcome, Provider
from ..state.models import ActualStateRecord
from ..state.store import StateStore
from ..utils.errors import (
    ConvergeError,
    ProviderError,
    ProviderErrorKind,
    ReferenceResolutionError,
)
from ..utils.logging import get_logger

logger = get_logger("execute.executor")


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Executor:
    """
    Applies plan batches in order, running the steps of a batch concurrently.
    
    The state store is updated after every successful provider call, before
    the step is reported as succeeded. Failures never roll back what was
    already applied.
    
    `status` follows the plan: PENDING until apply starts, RUNNING while
    batches execute, then SUCCEEDED, FAILED or CANCELLED.
    """
    
    def __init__(
        self,
        provider: Provider,
        store: StateStore,
        parallelism: int = 4,
        call_timeout: Optional[float] = None,
    ):
        if parallelism < 1:
            raise ValueError("parallelism must be at least 1")
        self.provider = provider
        self.store = store
        self.parallelism = parallelism
        self.call_timeout = call_timeout
        self.status = PlanStatus.PENDING
    
    def apply(self, plan: ExecutionPlan, cancel_event: Optional[threading.Event] = None) -> ApplyResult:
        """
        Execute a plan.
        
        Args:
            plan: Plan produced by the planner
            cancel_event: When set, no further batch is started; steps already
                running finish first
        
        Returns:
            ApplyResult with one outcome per step
        """
        outcomes: Dict[str, StepOutcome] = {}
        for index, batch in enumerate(plan.batches):
            for step in batch:
                outcomes[step.key] = StepOutcome(
                    address=step.address,
                    operation=step.operation,
                    action=step.action,
                    batch=index,
                )
        cancelled = False
        result = ApplyResult(status=PlanStatus.RUNNING)
        self.status = result.status
        
        logger.info(f"Applying {len(outcomes)} steps in {len(plan.batches)} batches")
        
        with ThreadPoolExecutor(max_workers=self.parallelism, thread_name_prefix="converge-step") as pool:
            for index, batch in enumerate(plan.batches):
                if cancel_event is not None and cancel_event.is_set():
                    logger.warning(f"Cancelled before batch {index + 1}/{len(plan.batches)}")
                    cancelled = True
                    break
                
                runnable = [step for step in batch if outcomes[step.key].status == StepStatus.PENDING]
                if not runnable:
                    continue
                
                logger.info(f"Batch {index + 1}/{len(plan.batches)}: {', '.join(str(s) for s in runnable)}")
                futures = {}
                for step in runnable:
                    outcome = outcomes[step.key]
                    outcome.status = StepStatus.RUNNING
                    outcome.started_at = _now()
                    futures[pool.submit(self._run_step, plan, step)] = step
                
                for future in as_completed(futures):
                    step = futures[future]
                    self._record_outcome(plan, step, future, outcomes)
        
        for outcome in outcomes.values():
            if outcome.status == StepStatus.PENDING:
                outcome.status = StepStatus.SKIPPED
                outcome.message = "cancelled"
        
        result.steps = list(outcomes.values())
        if cancelled:
            result.status = PlanStatus.CANCELLED
        elif any(o.status == StepStatus.FAILED for o in outcomes.values()):
            result.status = PlanStatus.FAILED
        else:
            result.status = PlanStatus.SUCCEEDED
        self.status = result.status
        
        logger.info(
            f"Apply {result.status.value}: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed, {len(result.skipped)} skipped"
        )
        return result
    
    def _record_outcome(self, plan: ExecutionPlan, step: PlanStep, future, outcomes: Dict[str, StepOutcome]) -> None:
        outcome = outcomes[step.key]
        outcome.finished_at = _now()
        try:
            future.result()
        except ProviderError as e:
            self._fail(plan, step, outcomes, e.kind.value, str(e))
        except ConvergeError as e:
            self._fail(plan, step, outcomes, type(e).__name__, str(e))
        except Exception as e:
            logger.error(f"Unexpected error in {step}: {e}", exc_info=True)
            self._fail(plan, step, outcomes, ProviderErrorKind.REJECTED.value, f"{type(e).__name__}: {e}")
        else:
            outcome.status = StepStatus.SUCCEEDED
            logger.info(f"{step}: done")
    
    def _fail(self, plan: ExecutionPlan, step: PlanStep, outcomes: Dict[str, StepOutcome], kind: str, message: str) -> None:
        outcome = outcomes[step.key]
        outcome.status = StepStatus.FAILED
        outcome.error_kind = kind
        outcome.message = message
        logger.error(f"{step} failed ({kind}): {message}")
        
        for key in sorted(plan.descendants(step.key)):
            dependent = outcomes[key]
            if dependent.status != StepStatus.PENDING:
                continue
            dependent.status = StepStatus.SKIPPED
            dependent.message = f"depends on failed {step}"
            logger.warning(f"Skipping {dependent.operation.value} {dependent.address}: {dependent.message}")
    
    def _run_step(self, plan: ExecutionPlan, step: PlanStep) -> None:
        if step.operation == StepOperation.CREATE:
            self._create(plan, step)
        elif step.operation == StepOperation.UPDATE:
            self._update(plan, step)
        else:
            self._destroy(plan, step)
    
    def _create(self, plan: ExecutionPlan, step: PlanStep) -> None:
        resource = plan.graph.get_resource(step.address)
        attributes = resolve_attributes(resource.attributes, self._lookup)
        
        identifier, reported = self._call(step, self.provider.create, step.type, attributes)
        
        self.store.put(step.address, ActualStateRecord(
            address=step.address,
            type=step.type,
            identifier=identifier,
            applied=attributes,
            attributes=reported or {},
            dependencies=sorted(plan.graph.get_dependencies(step.address)),
        ))
    
    def _update(self, plan: ExecutionPlan, step: PlanStep) -> None:
        resource = plan.graph.get_resource(step.address)
        record = self.store.get(step.address)
        if record is None:
            raise ProviderError(ProviderErrorKind.NOT_FOUND, f"{step.address} has no recorded state to update", step.address)
        
        attributes = resolve_attributes(resource.attributes, self._lookup)
        changed = {
            name: value for name, value in attributes.items()
            if name not in record.applied or record.applied[name] != value
        }
        for name in record.applied:
            if name not in attributes:
                changed[name] = None
        
        reported = record.attributes
        if changed:
            reported = self._call(step, self.provider.update, step.type, record.identifier, changed)
        else:
            logger.debug(f"{step}: no attribute changes left, only refreshing the record")
        
        self.store.put(step.address, record.model_copy(update={
            "applied": attributes,
            "attributes": reported or {},
            "dependencies": sorted(plan.graph.get_dependencies(step.address)),
            "updated_at": _now(),
        }))
    
    def _destroy(self, plan: ExecutionPlan, step: PlanStep) -> None:
        entry = plan.entry(step.address)
        prior = entry.prior if entry is not None else None
        if prior is None:
            prior = self.store.get(step.address)
        if prior is None:
            logger.info(f"{step}: nothing recorded, already absent")
            return
        
        try:
            outcome = self._call(step, self.provider.destroy, prior.type, prior.identifier)
        except ProviderError as e:
            if e.kind != ProviderErrorKind.NOT_FOUND:
                raise
            outcome = DestroyOutcome.NOT_FOUND
        
        if outcome == DestroyOutcome.NOT_FOUND:
            logger.info(f"{step}: {prior.identifier} was already absent")
        
        current = self.store.get(step.address)
        if current is not None and current.identifier == prior.identifier:
            self.store.remove(step.address)
    
    def _lookup(self, address: str, attribute: str) -> Any:
        record = self.store.get(address)
        if record is None:
            raise ReferenceResolutionError(f"{address} has no recorded state")
        try:
            return record.attribute(attribute)
        except KeyError:
            raise ReferenceResolutionError(f"{address} has no attribute '{attribute}'")
    
    def _call(self, step: PlanStep, operation: Callable[..., Any], *args: Any) -> Any:
        """Invoke one provider operation, bounded by call_timeout."""
        logger.debug(f"{step}: calling provider.{operation.__name__}")
        if self.call_timeout is None:
            return operation(*args)
        
        caller = ThreadPoolExecutor(max_workers=1, thread_name_prefix="converge-call")
        try:
            return caller.submit(operation, *args).result(timeout=self.call_timeout)
        except FuturesTimeoutError:
            raise ProviderError(
                ProviderErrorKind.TIMEOUT,
                f"provider.{operation.__name__} did not return within {self.call_timeout}s",
                step.address,
            )
        finally:
            caller.shutdown(wait=False)
