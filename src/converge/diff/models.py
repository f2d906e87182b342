"""Pydantic models for diff results."""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from ..providers.base import ReplaceStrategy
from ..state.models import ActualStateRecord


class DiffAction(str, Enum):
    """What has to happen to one resource."""
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"
    DESTROY = "DESTROY"
    NO_OP = "NO_OP"


class AttributeChange(BaseModel):
    """Old and new value of one attribute."""
    old: Any = None
    new: Any = None
    unknown: bool = Field(default=False, description="New value is only known after apply")
    forces_replacement: bool = False


class DiffEntry(BaseModel):
    """Diff result for a single address."""
    address: str
    type: str
    action: DiffAction
    changes: Dict[str, AttributeChange] = Field(default_factory=dict)
    prior: Optional[ActualStateRecord] = Field(None, description="Recorded state the diff was computed against")
    replace_strategy: ReplaceStrategy = ReplaceStrategy.DESTROY_BEFORE_CREATE
    reason: Optional[str] = Field(None, description="Why a REPLACE was chosen")

    @property
    def is_noop(self) -> bool:
        return self.action == DiffAction.NO_OP


class DiffSet(BaseModel):
    """All diff entries of one planning cycle, keyed by address."""
    entries: Dict[str, DiffEntry] = Field(default_factory=dict)

    def get(self, address: str) -> Optional[DiffEntry]:
        return self.entries.get(address)

    def changed(self) -> List[DiffEntry]:
        return [entry for entry in self.entries.values() if not entry.is_noop]

    def counts(self) -> Dict[str, int]:
        counts = {action.value: 0 for action in DiffAction}
        for entry in self.entries.values():
            counts[entry.action.value] += 1
        return counts
