#!/usr/bin/env python3
"""Tests for JSX markup generation."""

import logging

import pytest

from tests.fixtures.wsdl_fixtures import ORDER_TYPES_XSD, build_registry
from wsdl2tsx.services.domain.schema.markup import MarkupGenerator, generate_body, indent
from wsdl2tsx.services.domain.schema.namespaces import NamespaceResolver, extract_namespace_mappings
from wsdl2tsx.services.domain.schema.prefixes import PrefixGenerator, TagUsageCollector
from wsdl2tsx.services.domain.schema.reference_resolver import TypeReferenceResolver
from wsdl2tsx.services.domain.schema.type_graph import (
    InlineObject,
    PropertyDescriptor,
    Reference,
    RunContext,
)

FOO_NS = "http://example.com/foo"
TYPES_NS = "http://example.com/types"


class MarkupHarness:
    """Resolver, prefixes and mappings sharing one RunContext"""

    def __init__(self, registry):
        self.context = RunContext()
        self.resolver = TypeReferenceResolver(registry, self.context)
        self.prefixes = PrefixGenerator(self.context)
        self.markup = MarkupGenerator(self.resolver, self.prefixes)
        self.namespaces = NamespaceResolver(self.resolver, self.prefixes, self.markup)

    def body(self, key: str, obj: InlineObject, **kwargs) -> str:
        mappings = self.namespaces.extract_namespace_mappings(key, obj)
        return self.markup.generate_body(mappings.base_prefix, mappings, key, obj, **kwargs)


class TestMarkupGenerator:
    """Test suite for generate_body"""

    @pytest.fixture
    def foo_xsd(self):
        """Qualified element with one primitive child"""
        return b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                              targetNamespace="http://example.com/foo"
                              elementFormDefault="qualified">
          <xs:element name="Foo">
            <xs:complexType>
              <xs:sequence>
                <xs:element name="bar" type="xs:string"/>
              </xs:sequence>
            </xs:complexType>
          </xs:element>
        </xs:schema>"""

    def test_single_primitive_child(self, foo_xsd):
        """Test the markup of a root with one qualified primitive child."""
        registry = build_registry(foo_xsd)
        harness = MarkupHarness(registry)
        prefix = harness.prefixes.prefix_for(FOO_NS)

        body = harness.body(f"{FOO_NS}:Foo", registry.elements[f"{FOO_NS}:Foo"])

        assert body == (
            f"<{prefix}.Foo>\n"
            f"    <{prefix}.bar>{{props.bar}}</{prefix}.bar>\n"
            f"</{prefix}.Foo>"
        )

    def test_unqualified_children_use_xml_namespace(self):
        """Test that unqualified local elements render under xml."""
        registry = build_registry(b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                                 targetNamespace="http://example.com/foo">
          <xs:element name="Foo">
            <xs:complexType>
              <xs:sequence>
                <xs:element name="bar" type="xs:string"/>
                <xs:element name="baz" type="xs:int" minOccurs="0"/>
              </xs:sequence>
            </xs:complexType>
          </xs:element>
        </xs:schema>""")
        harness = MarkupHarness(registry)
        prefix = harness.prefixes.prefix_for(FOO_NS)

        body = harness.body(f"{FOO_NS}:Foo", registry.elements[f"{FOO_NS}:Foo"])

        assert body == (
            f"<{prefix}.Foo>\n"
            "    <xml.bar>{props.bar}</xml.bar>\n"
            "    <xml.baz>{props.baz}</xml.baz>\n"
            f"</{prefix}.Foo>"
        )

    def test_repeated_elements_are_mapped(self):
        """Test that repeated children iterate over the props array."""
        registry = build_registry(ORDER_TYPES_XSD)
        harness = MarkupHarness(registry)
        p = harness.prefixes.prefix_for(TYPES_NS)

        body = harness.body(f"{TYPES_NS}:Order", registry.complex_types[f"{TYPES_NS}:Order"])

        assert body == (
            f"<{p}.Order>\n"
            "    {props.line.map((item, i) => (\n"
            f"        <{p}.line>\n"
            f"            <{p}.sku>{{item.sku}}</{p}.sku>\n"
            f"            <{p}.qty>{{item.qty}}</{p}.qty>\n"
            f"        </{p}.line>\n"
            "    ))}\n"
            f"    <{p}.note>{{props.note}}</{p}.note>\n"
            f"</{p}.Order>"
        )

    def test_wrapper_chain_keeps_parent_path(self):
        """Test that single-property wrappers are emitted without extending the path."""
        registry = build_registry(b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                                 xmlns:tns="http://example.com/foo"
                                                 targetNamespace="http://example.com/foo"
                                                 elementFormDefault="qualified">
          <xs:element name="Request" type="tns:RequestType"/>
          <xs:complexType name="RequestType">
            <xs:sequence>
              <xs:element name="payload" type="tns:Payload"/>
            </xs:sequence>
          </xs:complexType>
          <xs:complexType name="Payload">
            <xs:sequence>
              <xs:element name="a" type="xs:string"/>
              <xs:element name="b" type="xs:int"/>
            </xs:sequence>
          </xs:complexType>
        </xs:schema>""")
        harness = MarkupHarness(registry)
        p = harness.prefixes.prefix_for(FOO_NS)
        request_type = registry.complex_types[f"{FOO_NS}:RequestType"]

        body = harness.body(f"{FOO_NS}:Request", request_type)

        assert body == (
            f"<{p}.Request>\n"
            f"    <{p}.payload>\n"
            f"        <{p}.a>{{props.a}}</{p}.a>\n"
            f"        <{p}.b>{{props.b}}</{p}.b>\n"
            f"    </{p}.payload>\n"
            f"</{p}.Request>"
        )

    def test_recursive_type_renders_empty_tag(self):
        """Test that a type already open on the path is not expanded again."""
        registry = build_registry(b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                                 xmlns:tns="http://example.com/foo"
                                                 targetNamespace="http://example.com/foo"
                                                 elementFormDefault="qualified">
          <xs:element name="Tree" type="tns:Node"/>
          <xs:complexType name="Node">
            <xs:sequence>
              <xs:element name="value" type="xs:string"/>
              <xs:element name="child" type="tns:Node" minOccurs="0"/>
            </xs:sequence>
          </xs:complexType>
        </xs:schema>""")
        harness = MarkupHarness(registry)
        p = harness.prefixes.prefix_for(FOO_NS)

        body = harness.body(f"{FOO_NS}:Tree", registry.complex_types[f"{FOO_NS}:Node"])

        assert body == (
            f"<{p}.Tree>\n"
            f"    <{p}.value>{{props.value}}</{p}.value>\n"
            f"    <{p}.child></{p}.child>\n"
            f"</{p}.Tree>"
        )

    def test_self_typed_element_renders_unwrapped(self):
        """Test that a ref to an element typed by its own name drops the enclosing tag."""
        registry = build_registry(b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                                 xmlns:tns="http://example.com/foo"
                                                 targetNamespace="http://example.com/foo"
                                                 elementFormDefault="qualified">
          <xs:element name="Foo" type="tns:Foo"/>
          <xs:complexType name="Foo">
            <xs:sequence>
              <xs:element name="x" type="xs:string"/>
              <xs:element name="y" type="xs:int"/>
            </xs:sequence>
          </xs:complexType>
          <xs:element name="Req">
            <xs:complexType>
              <xs:sequence>
                <xs:element ref="tns:Foo"/>
                <xs:element name="note" type="xs:string"/>
              </xs:sequence>
            </xs:complexType>
          </xs:element>
        </xs:schema>""")
        harness = MarkupHarness(registry)
        p = harness.prefixes.prefix_for(FOO_NS)

        body = harness.body(f"{FOO_NS}:Req", registry.elements[f"{FOO_NS}:Req"])

        assert body == (
            f"<{p}.Req>\n"
            f"    <{p}.x>{{props.foo.x}}</{p}.x>\n"
            f"    <{p}.y>{{props.foo.y}}</{p}.y>\n"
            f"    <{p}.note>{{props.note}}</{p}.note>\n"
            f"</{p}.Req>"
        )

    def test_props_prefix_for_headers(self, foo_xsd):
        """Test that a props prefix moves every path under that field."""
        registry = build_registry(foo_xsd)
        harness = MarkupHarness(registry)

        body = harness.body(f"{FOO_NS}:Foo", registry.elements[f"{FOO_NS}:Foo"], props_prefix="auth")

        assert "{props.auth.bar}" in body

    def test_unresolved_reference_renders_leaf(self, caplog):
        """Test that an unknown type renders as text with a warning."""
        harness = MarkupHarness(build_registry(ORDER_TYPES_XSD))
        root = InlineObject(
            properties={
                "ghost": PropertyDescriptor(type=Reference(f"{FOO_NS}:Ghost"), qualified=True, namespace=FOO_NS),
                "other": PropertyDescriptor(type=Reference(f"{FOO_NS}:Ghost"), qualified=True, namespace=FOO_NS),
            },
            namespace=FOO_NS,
        )
        p = harness.prefixes.prefix_for(FOO_NS)

        with caplog.at_level(logging.WARNING):
            body = harness.body(f"{FOO_NS}:Root", root)

        assert f"<{p}.ghost>{{props.ghost}}</{p}.ghost>" in body
        assert any("Unresolved reference" in record.getMessage() for record in caplog.records)

    def test_collector_records_emitted_tags(self, foo_xsd):
        """Test that every emitted tag is recorded with its prefix."""
        registry = build_registry(foo_xsd)
        harness = MarkupHarness(registry)
        prefix = harness.prefixes.prefix_for(FOO_NS)
        mappings = harness.namespaces.predict(f"{FOO_NS}:Foo", registry.elements[f"{FOO_NS}:Foo"])
        collector = TagUsageCollector()

        harness.markup.generate_body(prefix, mappings, f"{FOO_NS}:Foo", registry.elements[f"{FOO_NS}:Foo"], collector)

        assert collector.usages == [(prefix, "Foo"), (prefix, "bar")]
        assert collector.prefix_to_namespace == {prefix: FOO_NS}

    def test_collector_skips_unqualified_tags(self):
        """Test that xml.* tags are emitted but never recorded."""
        registry = build_registry(b"""<xs:schema xmlns:xs="http://www.w3.org/2001/XMLSchema"
                                                 targetNamespace="http://example.com/foo">
          <xs:element name="Foo">
            <xs:complexType>
              <xs:sequence>
                <xs:element name="bar" type="xs:string"/>
              </xs:sequence>
            </xs:complexType>
          </xs:element>
        </xs:schema>""")
        harness = MarkupHarness(registry)
        prefix = harness.prefixes.prefix_for(FOO_NS)
        root = registry.elements[f"{FOO_NS}:Foo"]
        mappings = harness.namespaces.predict(f"{FOO_NS}:Foo", root)
        collector = TagUsageCollector()

        body = harness.markup.generate_body(prefix, mappings, f"{FOO_NS}:Foo", root, collector)

        assert "<xml.bar>{props.bar}</xml.bar>" in body
        assert collector.usages == [(prefix, "Foo")]
        assert collector.prefix_to_namespace == {prefix: FOO_NS}

    def test_module_function(self, foo_xsd):
        """Test the module-level helper with a shared run context."""
        registry = build_registry(foo_xsd)
        context = RunContext()
        prefix = PrefixGenerator(context).prefix_for(FOO_NS)
        root = registry.elements[f"{FOO_NS}:Foo"]
        mappings = extract_namespace_mappings(f"{FOO_NS}:Foo", root, registry, context=context)

        body = generate_body(prefix, mappings, f"{FOO_NS}:Foo", root, registry, context=context)

        assert body.splitlines()[1] == f"    <{prefix}.bar>{{props.bar}}</{prefix}.bar>"


class TestIndent:
    """Tests for block indentation"""

    def test_blank_lines_stay_blank(self):
        """Test that empty lines are not padded."""
        assert indent("a\n\nb", 2) == "        a\n\n        b"
