#!/usr/bin/env python3
"""Tests for type reference resolution."""

import logging

import pytest

from wsdl2tsx.services.domain.schema.reference_resolver import TypeReferenceResolver, resolve_reference
from wsdl2tsx.services.domain.schema.type_graph import (
    XML_SCHEMA_URI,
    InlineObject,
    Primitive,
    PropertyDescriptor,
    Reference,
    SchemaRegistry,
)

NS = "http://example.com/test"
OTHER = "http://example.com/other"


def _object(**properties) -> InlineObject:
    return InlineObject(
        properties={name: PropertyDescriptor(type=node) for name, node in properties.items()},
        namespace=NS,
        qualified=True,
    )


class TestResolve:
    """Test suite for resolving references"""

    @pytest.fixture
    def payload(self):
        return _object(a=Primitive("string"), b=Primitive("int"))

    @pytest.fixture
    def registry(self, payload):
        """Element wrappers over a named type, a primitive wrapper and a chain"""
        return SchemaRegistry(
            elements={
                f"{NS}:Request": Reference(f"{NS}:RequestType", namespace=NS, qualified=True),
                f"{NS}:Code": Reference(f"{XML_SCHEMA_URI}:token", namespace=NS),
                f"{NS}:Alias": Reference(f"{NS}:Request", namespace=NS),
                f"{NS}:Ping": Reference(f"{NS}:Pong", namespace=NS),
                f"{NS}:Pong": Reference(f"{NS}:Ping", namespace=NS),
            },
            complex_types={
                f"{NS}:RequestType": _object(payload=Reference(f"{NS}:Payload")),
                f"{NS}:Payload": payload,
            },
        )

    def test_xml_schema_reference_is_primitive(self, registry):
        """Test that XML Schema names resolve to primitives."""
        resolution = TypeReferenceResolver(registry).resolve(f"{XML_SCHEMA_URI}:dateTime")

        assert resolution.node == Primitive("dateTime")
        assert resolution.node.host_type == "Date"

    def test_wrapper_followed_to_named_type(self, registry):
        """Test that element wrappers resolve to their complexType."""
        resolution = TypeReferenceResolver(registry).resolve(f"{NS}:Request")

        assert resolution.is_object
        assert resolution.key == f"{NS}:RequestType"
        assert resolution.wrapper.namespace == NS
        assert not resolution.circular

    def test_wrapper_chain(self, registry):
        """Test that element-to-element chains are followed."""
        resolution = TypeReferenceResolver(registry).resolve(f"{NS}:Alias")
        assert resolution.key == f"{NS}:RequestType"

    def test_primitive_wrapper(self, registry):
        """Test that an element of a built-in type resolves to the primitive."""
        resolution = TypeReferenceResolver(registry).resolve(f"{NS}:Code")
        assert resolution.node == Primitive("token")

    def test_element_of_same_named_type_is_circular(self, payload):
        """Test that an element typed by its own name unwraps to the complexType."""
        registry = SchemaRegistry(
            elements={f"{NS}:Foo": Reference(f"{NS}:Foo", namespace=NS, qualified=True)},
            complex_types={f"{NS}:Foo": payload},
        )

        resolution = TypeReferenceResolver(registry).resolve(f"{NS}:Foo")

        assert resolution.circular
        assert resolution.node is payload
        assert resolution.key == f"{NS}:Foo"
        assert resolution.wrapper.namespace == NS

    def test_circular_falls_back_to_local_name(self, payload):
        """Test that the unwrap finds the complexType by local name in another namespace."""
        registry = SchemaRegistry(
            elements={f"{NS}:Foo": Reference(f"{OTHER}:Foo", namespace=NS)},
            complex_types={f"{NS}:Foo": payload},
        )

        resolution = TypeReferenceResolver(registry).resolve(f"{NS}:Foo")

        assert resolution.circular
        assert resolution.key == f"{NS}:Foo"

    def test_circular_without_complex_type(self, caplog):
        """Test that a self-reference with no complexType is unresolved with a warning."""
        registry = SchemaRegistry(elements={f"{NS}:Foo": Reference(f"{NS}:Foo", namespace=NS)})

        with caplog.at_level(logging.WARNING):
            assert TypeReferenceResolver(registry).resolve(f"{NS}:Foo") is None

        assert any("loops back to itself" in record.getMessage() for record in caplog.records)

    def test_unknown_reference(self, registry):
        """Test that unknown references resolve to None."""
        assert TypeReferenceResolver(registry).resolve(f"{NS}:Nothing") is None

    def test_element_loop_terminates(self, registry):
        """Test that wrappers pointing at each other do not loop forever."""
        assert TypeReferenceResolver(registry).resolve(f"{NS}:Ping") is None

    def test_local_name_fallback(self, registry, payload):
        """Test that a reference in another namespace falls back to the local name."""
        resolution = TypeReferenceResolver(registry).resolve(f"{OTHER}:Payload")
        assert resolution.node is payload

    def test_resolve_reference_function(self, registry, payload):
        """Test the module-level helper and a separate ComplexTypePool."""
        assert resolve_reference(f"{NS}:Payload", registry) is payload

        replacement = _object(c=Primitive("boolean"))
        pool = {f"{NS}:Payload": replacement}
        assert resolve_reference(f"{NS}:Payload", registry, pool) is replacement


class TestLookup:
    """Test suite for registry lookups"""

    @pytest.fixture
    def registry(self):
        """Same local name declared in two namespaces"""
        return SchemaRegistry(
            elements={f"{NS}:Item": Reference(f"{NS}:Item", namespace=NS)},
            complex_types={
                f"{NS}:Item": _object(code=Primitive("string")),
                f"{OTHER}:Item": _object(label=Primitive("string")),
            },
        )

    def test_registry_searched_before_pool(self, registry):
        """Test that elements are preferred unless types are requested."""
        source, key, node = TypeReferenceResolver(registry).lookup(f"{NS}:Item")
        assert source == "elements"
        assert isinstance(node, Reference)

        source, key, node = TypeReferenceResolver(registry).lookup(f"{NS}:Item", prefer_types=True)
        assert source == "complex_types"
        assert isinstance(node, InlineObject)

    def test_ambiguous_local_name_warns_once(self, registry, caplog):
        """Test that ambiguous local-name matches are reported once."""
        resolver = TypeReferenceResolver(registry)

        with caplog.at_level(logging.WARNING):
            first = resolver.lookup("http://example.com/third:Item", prefer_types=True)
            second = resolver.lookup("http://example.com/fourth:Item", prefer_types=True)

        assert first[1] == second[1] == f"{NS}:Item"
        warnings = [record for record in caplog.records if "several types" in record.getMessage()]
        assert len(warnings) == 1

    def test_excluded_entries_skipped(self, registry):
        """Test that excluded (source, key) pairs are not returned."""
        found = TypeReferenceResolver(registry).lookup(
            f"{NS}:Item",
            prefer_types=True,
            exclude=[("complex_types", f"{NS}:Item"), ("elements", f"{NS}:Item")],
        )
        assert found[1] == f"{OTHER}:Item"


class TestTraversal:
    """Test suite for wrapper expansion and reachability"""

    @pytest.fixture
    def registry(self):
        node = InlineObject(namespace=NS)
        node.properties = {
            "value": PropertyDescriptor(type=Primitive("string")),
            "child": PropertyDescriptor(type=Reference(f"{NS}:Node"), min_occurs="0"),
        }
        return SchemaRegistry(
            complex_types={
                f"{NS}:Node": node,
                f"{NS}:Envelope": _object(body=Reference(f"{NS}:Body")),
                f"{NS}:Body": _object(node=Reference(f"{NS}:Node"), count=Primitive("int")),
                f"{NS}:Tags": InlineObject(
                    properties={"tag": PropertyDescriptor(type=Primitive("string"), max_occurs="unbounded")}
                ),
            },
        )

    def test_expansion_target_of_wrapper(self, registry):
        """Test that a single object property is an expansion target."""
        resolver = TypeReferenceResolver(registry)

        key, prop, payload = resolver.expansion_target(registry.complex_types[f"{NS}:Envelope"])

        assert key == "body"
        assert payload is registry.complex_types[f"{NS}:Body"]

    def test_no_expansion_for_multiple_or_array_properties(self, registry):
        """Test that objects with several properties or an array are not expanded."""
        resolver = TypeReferenceResolver(registry)

        assert resolver.expansion_target(registry.complex_types[f"{NS}:Body"]) is None
        assert resolver.expansion_target(registry.complex_types[f"{NS}:Tags"]) is None

    def test_no_expansion_for_primitive_property(self):
        """Test that a single primitive property is not expanded."""
        resolver = TypeReferenceResolver(SchemaRegistry())
        assert resolver.expansion_target(_object(value=Primitive("string"))) is None

    def test_find_referenced_types_handles_recursion(self, registry):
        """Test that reachability collects each named type once, even for cycles."""
        resolver = TypeReferenceResolver(registry)

        found = resolver.find_referenced_types(registry.complex_types[f"{NS}:Envelope"])

        assert found == {f"{NS}:Body", f"{NS}:Node"}
