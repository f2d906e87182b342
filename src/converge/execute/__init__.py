"""Plan execution."""

from .executor import Executor
from .models import ApplyResult, PlanStatus, StepOutcome, StepStatus

__all__ = ["ApplyResult", "Executor", "PlanStatus", "StepOutcome", "StepStatus"]
