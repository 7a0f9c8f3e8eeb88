"""Tests for the model registry and SchemaReflector."""

import pytest

from application.services.model_registry import ModelRegistry
from application.services.schema_reflector import SchemaReflector
from domain.exceptions import SchemaError, UnknownCollectionError
from domain.models import FieldDescriptor, FieldKind


def test_reflect_unknown_collection_raises(reflector):
    with pytest.raises(UnknownCollectionError) as exc:
        reflector.reflect("invoices")
    assert exc.value.collection == "invoices"


def test_reflect_zero_field_collection_is_valid(reflector):
    descriptor = reflector.reflect("audit_log")
    assert descriptor.name == "audit_log"
    assert descriptor.field_count == 0


def test_text_field_constraints(reflector):
    fields = reflector.reflect("users").fields
    email = fields["email"]
    assert email.kind is FieldKind.TEXT
    assert email.required and email.unique and email.indexed
    assert not email.has_default


def test_enum_values_keep_declaration_order(reflector):
    level = reflector.reflect("users").fields["membershipLevel"]
    assert level.enum == ("bronze", "silver", "gold", "platinum")
    assert level.has_default


def test_number_bounds(reflector):
    age = reflector.reflect("users").fields["age"]
    assert age.kind is FieldKind.NUMBER
    assert (age.minimum, age.maximum) == (13, 120)


def test_nested_paths_are_flattened(reflector):
    fields = reflector.reflect("orders").fields
    assert "shippingAddress" not in fields
    assert fields["shippingAddress.city"].kind is FieldKind.TEXT
    assert fields["shippingAddress.city"].required
    assert "preferences.priceRange.max" in reflector.reflect("users").fields


def test_identifier_reference_is_resolved(reflector):
    user = reflector.reflect("orders").fields["user"]
    assert user.kind is FieldKind.IDENTIFIER
    assert user.ref_model == "User"
    assert user.reference == "users"


def test_array_of_subdocuments(reflector):
    items = reflector.reflect("orders").fields["items"]
    assert items.kind is FieldKind.ARRAY
    assert items.item.kind is FieldKind.OBJECT
    assert list(items.item.properties) == ["product", "quantity", "price", "discount"]
    assert items.item.properties["product"].reference == "products"


def test_array_of_primitives(reflector):
    tags = reflector.reflect("products").fields["tags"]
    assert tags.kind is FieldKind.ARRAY
    assert tags.item.kind is FieldKind.TEXT
    assert tags.has_default


def test_timestamps_are_appended_as_computed(reflector):
    fields = reflector.reflect("products").fields
    assert list(fields)[-2:] == ["createdAt", "updatedAt"]
    assert fields["createdAt"].kind is FieldKind.TIMESTAMP
    assert fields["createdAt"].computed


def test_unresolved_reference_is_not_fatal(caplog):
    registry = ModelRegistry()
    registry.register("reviews", {"author": {"type": "ObjectId", "ref": "Reviewer"}})
    author = SchemaReflector(registry).reflect("reviews").fields["author"]
    assert author.ref_model == "Reviewer"
    assert author.reference is None
    assert "Reviewer" in caplog.text


def test_mixed_and_empty_array_definitions():
    registry = ModelRegistry()
    registry.register("misc", {"blob": "Mixed", "anything": [], "bag": {"type": {}}})
    fields = SchemaReflector(registry).reflect("misc").fields
    assert fields["blob"].kind is FieldKind.UNKNOWN
    assert fields["anything"].item.kind is FieldKind.UNKNOWN
    assert fields["bag"].kind is FieldKind.UNKNOWN


def test_embedded_object_with_type_key():
    registry = ModelRegistry()
    registry.register("places", {"geo": {"type": {"lat": float, "lng": float}, "required": True}})
    geo = SchemaReflector(registry).reflect("places").fields["geo"]
    assert geo.kind is FieldKind.OBJECT
    assert geo.required
    assert list(geo.properties) == ["lat", "lng"]


def test_unknown_type_is_rejected_at_registration():
    registry = ModelRegistry()
    with pytest.raises(SchemaError):
        registry.register("bad", {"x": "Uuid"})


def test_enum_on_non_text_is_rejected():
    registry = ModelRegistry()
    with pytest.raises(SchemaError):
        registry.register("bad", {"x": {"type": int, "enum": [1, 2]}})
    with pytest.raises(SchemaError):
        FieldDescriptor(kind=FieldKind.NUMBER, enum=("1",))


def test_duplicate_registration_is_rejected(models):
    with pytest.raises(SchemaError):
        models.register("users", {})


def test_model_aliases_resolve(models):
    assert models.resolve_model("Users") == "users"
    assert models.resolve_model("Order") == "orders"
    assert models.resolve_model("Invoice") is None


def test_extract_relationships(reflector):
    relationships = reflector.extract_relationships()
    assert relationships["users"] == []

    orders = {r.field: r for r in relationships["orders"]}
    assert orders["user"].kind == "reference"
    assert orders["user"].target_collection == "users"
    assert orders["user"].required
    assert orders["items.product"].kind == "nested-reference"
    assert orders["items.product"].target_model == "Product"


def test_array_reference_relationship():
    registry = ModelRegistry()
    registry.register("users", {"name": str}, model_name="User")
    registry.register("teams", {"members": [{"type": "ObjectId", "ref": "User"}]})
    rels = SchemaReflector(registry).extract_relationships("teams")["teams"]
    assert [(r.field, r.kind, r.target_collection) for r in rels] == [
        ("members", "array-reference", "users"),
    ]


def test_references_in_deeply_nested_objects_and_maps():
    registry = ModelRegistry()
    registry.register("users", {"name": str}, model_name="User")
    registry.register("tickets", {
        "meta": {"type": {
            "owner": {"type": {"user": {"type": "ObjectId", "ref": "User"}}},
        }},
        "watchers": {"type": "Map", "of": {"type": "ObjectId", "ref": "User"}},
    })
    rels = SchemaReflector(registry).extract_relationships("tickets")["tickets"]
    assert [(r.field, r.kind, r.target_collection) for r in rels] == [
        ("meta.owner.user", "nested-reference", "users"),
        ("watchers.$*", "nested-reference", "users"),
    ]


def test_empty_collection_name_is_not_all_collections(reflector):
    with pytest.raises(UnknownCollectionError):
        reflector.extract_relationships("")
