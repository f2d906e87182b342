"""Execution planning."""

from .models import ExecutionPlan, PlanStep, StepOperation
from .planner import build_plan

__all__ = ["ExecutionPlan", "PlanStep", "StepOperation", "build_plan"]
