"""Pydantic models for recorded actual state."""

from datetime import datetime, timezone
from typing import Any, Dict, List
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ActualStateRecord(BaseModel):
    """Last-known real-world state of one resource."""
    address: str = Field(..., description="Resource address, e.g. aws_vpc.main")
    type: str = Field(..., description="Resource kind tag")
    identifier: str = Field(..., description="Provider-assigned identifier")
    applied: Dict[str, Any] = Field(default_factory=dict, description="Resolved attributes last sent to the provider")
    attributes: Dict[str, Any] = Field(default_factory=dict, description="Attributes reported by the provider")
    dependencies: List[str] = Field(default_factory=list, description="Addresses depended on when applied")
    updated_at: datetime = Field(default_factory=_utcnow)

    def attribute(self, name: str) -> Any:
        """Value used when another resource references this one."""
        if name == "id":
            return self.identifier
        if name in self.attributes:
            return self.attributes[name]
        if name in self.applied:
            return self.applied[name]
        raise KeyError(name)
