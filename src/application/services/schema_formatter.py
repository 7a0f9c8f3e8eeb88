"""
application.services.schema_formatter - Compact schema strings for the LLM.

Renders each field of a CollectionDescriptor as one line:

    Type(required,unique,indexed,has-default) -> ref [a|b] {min:0,maxLen:40}

Modifiers appear only when present. Arrays render as Array<item> and
objects as Object<{...}> with their properties rendered recursively.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from domain.models import CollectionDescriptor, FieldDescriptor, FieldKind

if TYPE_CHECKING:
    from application.services.schema_reflector import SchemaReflector

logger = logging.getLogger(__name__)


class SchemaFormatter:

    def format(self, descriptor: CollectionDescriptor) -> dict[str, str]:
        """Field path → compact string, same keys as the descriptor."""
        return {path: self.format_field(field) for path, field in descriptor.fields.items()}

    def format_all(self, reflector: SchemaReflector) -> dict[str, dict[str, str]]:
        """Formatted schema of every registered collection."""
        schemas = {}
        for descriptor in reflector.reflect_all():
            schemas[descriptor.name] = self.format(descriptor)
            logger.debug(
                "Formatted schema for %s (%d fields)",
                descriptor.name, descriptor.field_count,
            )
        return schemas

    def format_field(self, field: FieldDescriptor) -> str:
        if field.kind is FieldKind.ARRAY and field.item is not None:
            return f"Array<{self.format_field(field.item)}>"
        if field.kind is FieldKind.OBJECT:
            nested = {name: self.format_field(p) for name, p in field.properties.items()}
            return f"Object<{json.dumps(nested, separators=(',', ':'))}>"

        text = field.kind.value
        if field.kind is FieldKind.MAP and field.values is not None:
            text = f"Map<{self.format_field(field.values)}>"

        flags = _flags(field)
        if flags:
            text += f"({','.join(flags)})"
        if field.reference:
            text += f" -> {field.reference}"
        if field.enum:
            text += f" [{'|'.join(field.enum)}]"
        bounds = _bounds(field)
        if bounds:
            text += " {" + ",".join(bounds) + "}"
        return text


def _flags(field: FieldDescriptor) -> list[str]:
    flags = []
    if field.required:
        flags.append("required")
    if field.unique:
        flags.append("unique")
    if field.indexed:
        flags.append("indexed")
    if field.has_default:
        flags.append("has-default")
    return flags


def _bounds(field: FieldDescriptor) -> list[str]:
    bounds = []
    if field.minimum is not None:
        bounds.append(f"min:{_scalar(field.minimum)}")
    if field.maximum is not None:
        bounds.append(f"max:{_scalar(field.maximum)}")
    # zero-length limits carry no information
    if field.min_length:
        bounds.append(f"minLen:{field.min_length}")
    if field.max_length:
        bounds.append(f"maxLen:{field.max_length}")
    return bounds


def _scalar(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
