"""Pydantic models for apply results."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from ..diff.models import DiffAction
from ..plan.models import StepOperation


class StepStatus(str, Enum):
    """Per-step state machine."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class PlanStatus(str, Enum):
    """Plan-level state machine."""
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


TERMINAL_STEP_STATUSES = (StepStatus.SUCCEEDED, StepStatus.FAILED, StepStatus.SKIPPED)


class StepOutcome(BaseModel):
    """What happened to one plan step."""
    address: str
    operation: StepOperation
    action: DiffAction
    batch: int = Field(..., ge=0)
    status: StepStatus = StepStatus.PENDING
    error_kind: Optional[str] = Field(None, description="ProviderErrorKind value or error class name")
    message: Optional[str] = None
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None


class ApplyResult(BaseModel):
    """Result of executing a plan."""
    status: PlanStatus = PlanStatus.PENDING
    steps: List[StepOutcome] = Field(default_factory=list)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    output_error: Optional[str] = Field(None, description="Why outputs could not be resolved after a successful apply")

    def _addresses(self, status: StepStatus) -> List[str]:
        return sorted({step.address for step in self.steps if step.status == status})

    @property
    def succeeded(self) -> List[str]:
        return self._addresses(StepStatus.SUCCEEDED)

    @property
    def failed(self) -> List[str]:
        return self._addresses(StepStatus.FAILED)

    @property
    def skipped(self) -> List[str]:
        return self._addresses(StepStatus.SKIPPED)

    @property
    def ok(self) -> bool:
        return self.status == PlanStatus.SUCCEEDED and self.output_error is None

    def problems(self) -> List[StepOutcome]:
        """Every step that did not succeed, with its reason."""
        return [step for step in self.steps if step.status != StepStatus.SUCCEEDED]

    def counts(self) -> Dict[str, int]:
        """Applied changes in added / changed / destroyed terms."""
        counts = {"added": 0, "changed": 0, "destroyed": 0}
        for step in self.steps:
            if step.status != StepStatus.SUCCEEDED:
                continue
            if step.operation == StepOperation.CREATE:
                counts["added"] += 1
            elif step.operation == StepOperation.UPDATE:
                counts["changed"] += 1
            else:
                counts["destroyed"] += 1
        return counts
