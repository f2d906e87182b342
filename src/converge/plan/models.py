"""Execution plan types."""

from enum import Enum
from typing import Any, Dict, List, Optional, Set
import networkx as nx
from pydantic import BaseModel
from ..diff.models import DiffAction, DiffEntry, DiffSet
from ..graph.dependency_graph import DependencyGraph


class StepOperation(str, Enum):
    """Single provider operation performed by a plan step."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DESTROY = "DESTROY"


class PlanStep(BaseModel):
    """One provider operation on one address."""
    address: str
    type: str
    operation: StepOperation
    action: DiffAction

    class Config:
        frozen = True

    @property
    def key(self) -> str:
        return step_key(self.address, self.operation)

    def __str__(self) -> str:
        if self.action == DiffAction.REPLACE:
            return f"{self.operation.value} {self.address} (replace)"
        return f"{self.operation.value} {self.address}"


def step_key(address: str, operation: StepOperation) -> str:
    return f"{address}#{operation.value.lower()}"


class ExecutionPlan:
    """
    Ordered batches of plan steps.
    
    Steps within a batch have no ordering constraint between them. Every edge
    of the step graph points from a step to one in a later batch.
    """
    
    def __init__(
        self,
        diff: DiffSet,
        graph: DependencyGraph,
        step_graph: nx.DiGraph,
        batches: List[List[PlanStep]],
        destroy: bool = False,
    ):
        self.diff = diff
        self.graph = graph
        self.step_graph = step_graph
        self.batches = batches
        self.destroy = destroy
        # Set by plan_changes when the plan was computed against refreshed state
        self.refreshed = None
    
    @property
    def is_empty(self) -> bool:
        return not self.batches
    
    def steps(self) -> List[PlanStep]:
        return [step for batch in self.batches for step in batch]
    
    def entry(self, address: str) -> Optional[DiffEntry]:
        return self.diff.get(address)
    
    def descendants(self, key: str) -> Set[str]:
        """Step keys that must wait for the given step."""
        if key not in self.step_graph:
            return set()
        return nx.descendants(self.step_graph, key)
    
    def batch_index(self, key: str) -> Optional[int]:
        for index, batch in enumerate(self.batches):
            if any(step.key == key for step in batch):
                return index
        return None
    
    def address_batches(self) -> List[List[str]]:
        """Batches as sorted address lists."""
        return [sorted({step.address for step in batch}) for batch in self.batches]
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "destroy": self.destroy,
            "summary": self.diff.counts(),
            "batches": [
                [
                    {"address": step.address, "operation": step.operation.value, "action": step.action.value}
                    for step in batch
                ]
                for batch in self.batches
            ],
            "changes": {
                entry.address: entry.model_dump(mode="json", exclude={"prior"})
                for entry in self.diff.changed()
            },
        }
