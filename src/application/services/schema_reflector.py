"""
application.services.schema_reflector - Registry → CollectionDescriptor.

Turns a registered model into the descriptor tree the formatter and the
describe_schema tool consume: resolves declared references to collection
names and adds the implicit createdAt/updatedAt fields of timestamped models.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from application.services.model_registry import ModelRegistry
from domain.models import CollectionDescriptor, FieldDescriptor, FieldKind, Relationship

logger = logging.getLogger(__name__)

_TIMESTAMP_FIELDS = ("createdAt", "updatedAt")


class SchemaReflector:
    """Reflects registered models. Stateless apart from the registry it reads."""

    def __init__(self, registry: ModelRegistry):
        self._registry = registry

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def reflect(self, collection: str) -> CollectionDescriptor:
        """Descriptor for one collection.

        Raises:
            UnknownCollectionError: if the collection is not registered.
        """
        model = self._registry.lookup(collection)
        fields = {
            path: self._resolve(descriptor, collection, path)
            for path, descriptor in model.fields.items()
        }
        if model.timestamps:
            for name in _TIMESTAMP_FIELDS:
                fields[name] = FieldDescriptor(kind=FieldKind.TIMESTAMP, computed=True)
        return CollectionDescriptor(name=collection, fields=fields)

    def reflect_all(self) -> list[CollectionDescriptor]:
        return [self.reflect(name) for name in self._registry.collections()]

    def extract_relationships(
        self, collection: Optional[str] = None,
    ) -> dict[str, list[Relationship]]:
        """Resolved references per collection (all collections when None)."""
        names = [collection] if collection is not None else self._registry.collections()
        relationships: dict[str, list[Relationship]] = {}
        for name in names:
            found: list[Relationship] = []
            for path, descriptor in self.reflect(name).fields.items():
                found.extend(_relationships_of(path, descriptor))
            relationships[name] = found
        return relationships

    # ------------------------------------------------------------------

    def _resolve(
        self, descriptor: FieldDescriptor, collection: str, path: str,
    ) -> FieldDescriptor:
        reference = None
        if descriptor.ref_model:
            reference = self._registry.resolve_model(descriptor.ref_model)
            if reference is None:
                logger.warning(
                    "Field %s.%s references unknown model %s",
                    collection, path, descriptor.ref_model,
                )

        item = descriptor.item
        if item is not None:
            item = self._resolve(item, collection, path)
        values = descriptor.values
        if values is not None:
            values = self._resolve(values, collection, f"{path}.$*")

        return replace(
            descriptor,
            reference=reference,
            item=item,
            values=values,
            properties={
                name: self._resolve(nested, collection, f"{path}.{name}")
                for name, nested in descriptor.properties.items()
            },
        )


def _relationships_of(path: str, descriptor: FieldDescriptor) -> list[Relationship]:
    found: list[Relationship] = []

    if descriptor.reference:
        kind = "nested-reference" if "." in path else "reference"
        found.append(_relationship(path, descriptor, kind))

    item = descriptor.item
    if descriptor.kind is FieldKind.ARRAY and item is not None:
        if item.reference:
            found.append(_relationship(path, item, "array-reference", descriptor.required))
        elif item.kind is FieldKind.OBJECT:
            found.extend(_nested(path, item))

    if descriptor.kind is FieldKind.OBJECT:
        found.extend(_nested(path, descriptor))

    # Map values are addressed as <path>.$*
    if descriptor.kind is FieldKind.MAP and descriptor.values is not None:
        found.extend(_relationships_of(f"{path}.$*", descriptor.values))

    return found


def _nested(path: str, descriptor: FieldDescriptor) -> list[Relationship]:
    found: list[Relationship] = []
    for name, nested in descriptor.properties.items():
        found.extend(_relationships_of(f"{path}.{name}", nested))
    return found


def _relationship(
    path: str, descriptor: FieldDescriptor, kind: str, required: Optional[bool] = None,
) -> Relationship:
    return Relationship(
        field=path,
        target_collection=descriptor.reference or "",
        target_model=descriptor.ref_model or "",
        kind=kind,
        required=descriptor.required if required is None else required,
    )
