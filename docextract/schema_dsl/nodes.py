"""
nodes.py

Compiled form of the schema DSL.

A raw schema definition (plain nested JSON) is turned into a tree of
these nodes by compiler.py and walked by validator.py.

Three node kinds exist:
- ObjectNode: named fields, each with its own node
- ArrayNode: one item template applied to every element
- ScalarNode: a base type, a nullable flag and optional enum literals

Nodes are frozen dataclasses. Once the compiler builds a node,
nothing changes it.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple, Union


class ScalarType(str, Enum):
    """Base types a DSL scalar can declare."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ANY = "any"


@dataclass(frozen=True)
class ScalarNode:
    """
    Leaf of the schema tree.

    enum_values is None for plain types. When set, the value must be
    one of these literals, whatever base_type says.
    """

    base_type: ScalarType = ScalarType.ANY
    nullable: bool = False
    enum_values: Optional[Tuple[str, ...]] = None

    @property
    def is_enum(self) -> bool:
        return self.enum_values is not None

    def describe(self) -> str:
        """Short human label used in error messages."""
        if self.enum_values is not None:
            return " | ".join(f"'{value}'" for value in self.enum_values)
        return self.base_type.value


@dataclass(frozen=True)
class ArrayNode:
    """Array whose elements all follow the same item template."""

    item: "SchemaNode" = field(default_factory=ScalarNode)


@dataclass(frozen=True)
class ObjectNode:
    """Mapping of field name to node. Field order is kept."""

    fields: Mapping[str, "SchemaNode"] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mapping so the node cannot be changed after compile
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


SchemaNode = Union[ObjectNode, ArrayNode, ScalarNode]
