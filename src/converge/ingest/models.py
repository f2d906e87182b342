"""Pydantic models for desired-state declarations."""

from typing import Annotated, Any, Dict, List, Literal, Union
from pydantic import BaseModel, Field


class LiteralValue(BaseModel):
    """A value used as written."""
    kind: Literal["literal"] = "literal"
    value: Any = Field(None, description="Scalar or reference-free collection")

    class Config:
        frozen = True


class Reference(BaseModel):
    """An attribute of another resource, resolved from actual state."""
    kind: Literal["reference"] = "reference"
    address: str = Field(..., description="Address of the referenced resource")
    attribute: str = Field(..., description="Attribute read from the referenced resource")

    class Config:
        frozen = True

    def __str__(self) -> str:
        return f"${{{self.address}.{self.attribute}}}"


class Template(BaseModel):
    """A string with one or more interpolated references."""
    kind: Literal["template"] = "template"
    parts: List[Union[str, Reference]] = Field(default_factory=list)

    class Config:
        frozen = True


class ListValue(BaseModel):
    """A list holding at least one reference."""
    kind: Literal["list"] = "list"
    items: List["AttributeValue"] = Field(default_factory=list)

    class Config:
        frozen = True


class MapValue(BaseModel):
    """A mapping holding at least one reference."""
    kind: Literal["map"] = "map"
    entries: Dict[str, "AttributeValue"] = Field(default_factory=dict)

    class Config:
        frozen = True


AttributeValue = Annotated[
    Union[LiteralValue, Reference, Template, ListValue, MapValue],
    Field(discriminator="kind"),
]

ListValue.model_rebuild()
MapValue.model_rebuild()


class ResourceDeclaration(BaseModel):
    """One typed resource node of the desired state."""
    type: str = Field(..., description="Resource kind tag, e.g. aws_vpc")
    name: str = Field(..., description="Name unique within the resource kind")
    attributes: Dict[str, AttributeValue] = Field(default_factory=dict)
    depends_on: List[str] = Field(default_factory=list, description="Explicit dependency addresses")

    class Config:
        frozen = True

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"


class DesiredState(BaseModel):
    """Normalized desired-state document."""
    resources: List[ResourceDeclaration] = Field(default_factory=list)
    outputs: Dict[str, AttributeValue] = Field(default_factory=dict)
