"""
application.services.model_registry - Declarative collection models.

Models are declared once at startup as mongoose-style definition dicts and
compiled into FieldDescriptor trees. The registry is read-only afterwards;
the reflector resolves cross-model references at reflect time.

Definition grammar (per field):
    "String" | str | int | float | bool | datetime | ...      → bare type
    {"type": <type>, "required": True, "enum": [...], ...}    → type + options
    [<definition>]  /  []                                     → Array of item / of Mixed
    {"street": ..., "city": ...}   (no "type" key)            → nested paths "a.street"
    {"type": {"street": ...}}                                 → embedded Object

Supported options: required, unique, index, default, enum, minlength,
maxlength, match, min, max, ref, of.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from domain.exceptions import SchemaError, UnknownCollectionError
from domain.models import FieldDescriptor, FieldKind

logger = logging.getLogger(__name__)

_TYPE_NAMES: dict[str, FieldKind] = {
    "string": FieldKind.TEXT,
    "number": FieldKind.NUMBER,
    "decimal128": FieldKind.NUMBER,
    "boolean": FieldKind.BOOLEAN,
    "bool": FieldKind.BOOLEAN,
    "date": FieldKind.TIMESTAMP,
    "objectid": FieldKind.IDENTIFIER,
    "array": FieldKind.ARRAY,
    "object": FieldKind.OBJECT,
    "map": FieldKind.MAP,
    "mixed": FieldKind.UNKNOWN,
}

_PYTHON_TYPES: dict[type, FieldKind] = {
    str: FieldKind.TEXT,
    int: FieldKind.NUMBER,
    float: FieldKind.NUMBER,
    Decimal: FieldKind.NUMBER,
    bool: FieldKind.BOOLEAN,
    datetime: FieldKind.TIMESTAMP,
    date: FieldKind.TIMESTAMP,
    list: FieldKind.ARRAY,
    dict: FieldKind.UNKNOWN,
    object: FieldKind.UNKNOWN,
}

_MIXED = FieldDescriptor(kind=FieldKind.UNKNOWN)


@dataclass(frozen=True)
class RegisteredModel:
    """One compiled model. References are declared but not yet resolved."""
    collection: str
    model_name: str
    fields: dict[str, FieldDescriptor]
    timestamps: bool = False
    aliases: tuple[str, ...] = ()


class ModelRegistry:
    """Ordered, read-only table of the collections the agent may touch."""

    def __init__(self) -> None:
        self._models: dict[str, RegisteredModel] = {}
        self._model_names: dict[str, str] = {}

    def register(
        self,
        collection: str,
        fields: Mapping[str, Any],
        *,
        model_name: Optional[str] = None,
        timestamps: bool = False,
        aliases: Iterable[str] = (),
    ) -> RegisteredModel:
        """Compile and register a model. Raises SchemaError on bad definitions."""
        if collection in self._models:
            raise SchemaError(f"Collection '{collection}' is already registered")

        model = RegisteredModel(
            collection=collection,
            model_name=model_name or collection,
            fields=compile_fields(fields),
            timestamps=timestamps,
            aliases=tuple(aliases),
        )
        self._models[collection] = model
        for name in (model.model_name, *model.aliases):
            self._model_names[name] = collection

        logger.debug(
            "Registered model %s → %s (%d fields)",
            model.model_name, collection, len(model.fields),
        )
        return model

    def lookup(self, collection: str) -> RegisteredModel:
        try:
            return self._models[collection]
        except KeyError:
            raise UnknownCollectionError(collection) from None

    def resolve_model(self, model_name: str) -> Optional[str]:
        """Map a model name (or alias) to its collection, None if unknown."""
        return self._model_names.get(model_name)

    def collections(self) -> list[str]:
        return list(self._models)

    def __contains__(self, collection: object) -> bool:
        return collection in self._models

    def __len__(self) -> int:
        return len(self._models)


# ---------------------------------------------------------------------------
# Definition compiler
# ---------------------------------------------------------------------------

def compile_fields(
    definitions: Mapping[str, Any], prefix: str = "",
) -> dict[str, FieldDescriptor]:
    """Compile a definition dict into path → descriptor, flattening nested paths."""
    fields: dict[str, FieldDescriptor] = {}
    for name, definition in definitions.items():
        path = f"{prefix}{name}"
        if _is_nested_path(definition):
            fields.update(compile_fields(definition, prefix=f"{path}."))
        else:
            fields[path] = compile_field(definition, path)
    return fields


def compile_field(definition: Any, path: str = "") -> FieldDescriptor:
    if isinstance(definition, Mapping) and "type" in definition:
        options: Mapping[str, Any] = definition
        type_value = definition["type"]
    else:
        options = {}
        type_value = definition

    kind, children = _resolve_type(type_value, path)
    return FieldDescriptor(kind=kind, **children, **_compile_options(kind, options, path))


def _compile_item(definition: Any, path: str) -> FieldDescriptor:
    # [{"product": ..., "quantity": ...}] is an array of subdocuments
    if _is_nested_path(definition):
        return FieldDescriptor(kind=FieldKind.OBJECT, properties=compile_fields(definition))
    return compile_field(definition, path)


def _is_nested_path(definition: Any) -> bool:
    return isinstance(definition, Mapping) and bool(definition) and "type" not in definition


def _resolve_type(type_value: Any, path: str) -> tuple[FieldKind, dict[str, Any]]:
    if isinstance(type_value, list):
        item = _compile_item(type_value[0], path) if type_value else _MIXED
        return FieldKind.ARRAY, {"item": item}

    if isinstance(type_value, Mapping):
        if not type_value:
            return FieldKind.UNKNOWN, {}
        return FieldKind.OBJECT, {"properties": compile_fields(type_value)}

    if isinstance(type_value, str):
        kind = _TYPE_NAMES.get(type_value.lower())
    elif isinstance(type_value, type):
        kind = _PYTHON_TYPES.get(type_value)
    else:
        kind = None

    if kind is None:
        raise SchemaError(f"Unsupported type {type_value!r} for field '{path}'")
    if kind is FieldKind.ARRAY:
        return kind, {"item": _MIXED}
    return kind, {}


def _compile_options(
    kind: FieldKind, options: Mapping[str, Any], path: str,
) -> dict[str, Any]:
    compiled: dict[str, Any] = {
        "required": bool(options.get("required")),
        "unique": bool(options.get("unique")),
        "indexed": bool(options.get("index")),
        "has_default": "default" in options,
    }

    if "enum" in options:
        if kind is not FieldKind.TEXT:
            raise SchemaError(f"Field '{path}': enum is only allowed on String fields")
        compiled["enum"] = tuple(str(v) for v in options["enum"])

    if kind is FieldKind.TEXT:
        compiled["min_length"] = options.get("minlength")
        compiled["max_length"] = options.get("maxlength")
        match = options.get("match")
        if isinstance(match, re.Pattern):
            match = match.pattern
        compiled["pattern"] = match

    if kind in (FieldKind.NUMBER, FieldKind.TIMESTAMP):
        compiled["minimum"] = _bound(options.get("min"))
        compiled["maximum"] = _bound(options.get("max"))

    if kind is FieldKind.IDENTIFIER and options.get("ref"):
        compiled["ref_model"] = str(options["ref"])

    if kind is FieldKind.MAP and "of" in options:
        compiled["values"] = compile_field(options["of"], f"{path}.$*")

    return compiled


def _bound(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value
