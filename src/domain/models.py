"""
domain.models - Value objects for schema reflection and agent turns.

These are immutable data containers with no business logic and no
dependencies on infrastructure (no LangChain, no Mongo, no Redis).

    - FieldKind / FieldDescriptor / CollectionDescriptor  → schema trees
    - Relationship                                       → cross-collection references
    - UsageRecord                                        → token usage of one turn
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from domain.exceptions import SchemaError


# ---------------------------------------------------------------------------
# Field descriptors
# ---------------------------------------------------------------------------

class FieldKind(str, Enum):
    """Closed set of field kinds.

    Values are the type labels rendered for the reasoning model, in the
    document store's own vocabulary.
    """
    TEXT = "String"
    NUMBER = "Number"
    BOOLEAN = "Boolean"
    TIMESTAMP = "Date"
    IDENTIFIER = "ObjectId"
    ARRAY = "Array"
    OBJECT = "Object"
    MAP = "Map"
    UNKNOWN = "Mixed"


Bound = Union[int, float, str]


@dataclass(frozen=True)
class FieldDescriptor:
    """Normalized type and constraints of one schema field.

    ref_model is the model name as declared; reference is the collection it
    resolves to (None until reflected, or when the name is unknown).
    """
    kind: FieldKind
    required: bool = False
    unique: bool = False
    indexed: bool = False
    has_default: bool = False
    computed: bool = False

    # Text
    enum: tuple[str, ...] = ()
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None

    # Number / Timestamp
    minimum: Optional[Bound] = None
    maximum: Optional[Bound] = None

    # Identifier
    ref_model: Optional[str] = None
    reference: Optional[str] = None

    # Containers
    item: Optional[FieldDescriptor] = None
    properties: dict[str, FieldDescriptor] = field(default_factory=dict)
    values: Optional[FieldDescriptor] = None

    def __post_init__(self) -> None:
        if self.enum and self.kind is not FieldKind.TEXT:
            raise SchemaError(f"enum values are only allowed on String fields, got {self.kind.value}")
        if self.kind is FieldKind.ARRAY and self.item is None:
            raise SchemaError("Array fields must declare an item type")


@dataclass(frozen=True)
class CollectionDescriptor:
    """A collection name plus its ordered field path → descriptor mapping."""
    name: str
    fields: dict[str, FieldDescriptor] = field(default_factory=dict)

    @property
    def field_count(self) -> int:
        return len(self.fields)


@dataclass(frozen=True)
class Relationship:
    """A reference from one collection's field to another collection.

    kind: "reference", "array-reference" or "nested-reference".
    """
    field: str
    target_collection: str
    target_model: str
    kind: str
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "targetCollection": self.target_collection,
            "targetModel": self.target_model,
            "type": self.kind,
            "required": self.required,
        }


# ---------------------------------------------------------------------------
# Usage
# ---------------------------------------------------------------------------

@dataclass
class UsageRecord:
    """Token usage accumulated over every reasoning call of a turn."""
    input_tokens: int = 0
    output_tokens: int = 0
    calls: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def add(self, usage_metadata: Optional[dict[str, Any]]) -> None:
        """Add one response's usage_metadata (missing metadata still counts the call)."""
        self.calls += 1
        if not usage_metadata:
            return
        self.input_tokens += int(usage_metadata.get("input_tokens", 0) or 0)
        self.output_tokens += int(usage_metadata.get("output_tokens", 0) or 0)

    def to_dict(self) -> dict[str, int]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
            "calls": self.calls,
        }
