#!/usr/bin/env python3
"""Schema AST builder.

Turns parsed ``schema`` nodes (from a WSDL ``types`` section or standalone XSD
files) into the Type Graph: every named complexType goes into the
ComplexTypePool and every global element into the element registry, both keyed
``"namespaceURI:localName"``. Imports are followed eagerly with a visited set so
diamond and cyclic imports are parsed once.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ....clients.schema_client import SchemaClient, SchemaLoadError
from .exceptions import EmptySchemaError, SchemaStructureError
from .node_accessors import (
    find_children,
    get_all_node,
    get_attribute,
    get_attribute_nodes,
    get_choice_node,
    get_complex_content_node,
    get_complex_type_nodes,
    get_element_nodes,
    get_extension_node,
    get_group_node,
    get_group_nodes,
    get_import_nodes,
    get_namespaces_from_node,
    get_restriction_node,
    get_schema_root,
    get_sequence_node,
    get_simple_content_node,
    get_simple_type_nodes,
    get_target_namespace,
    matches_tag,
)
from .type_graph import (
    DEFAULT_OCCURS,
    XML_SCHEMA_TYPES,
    XML_SCHEMA_URI,
    InlineObject,
    Primitive,
    PropertyDescriptor,
    Reference,
    SchemaRegistry,
    TypeNode,
    local_name,
    qualified_key,
)
from .xml_tree import parse_xml_tree

logger = logging.getLogger(__name__)

PARTICLE_TAGS = ("sequence", "choice", "all")
# complexType children that carry no element content
NON_STRUCTURAL_TAGS = ("annotation", "attribute", "attributeGroup", "anyAttribute")
# Prefixes conventionally bound to XML Schema, accepted even when undeclared
XML_SCHEMA_PREFIXES = ("xs", "xsd")
DEFAULT_ATTRIBUTE_TYPE = "xsd:string"


@dataclass
class SchemaScope:
    """Namespace context of the schema document currently being processed."""
    target_namespace: Optional[str]
    namespaces: dict[str, str]
    qualified: bool = False
    location: Optional[str] = None


@dataclass
class _GroupDefinition:
    node: dict
    scope: SchemaScope


@dataclass
class _BuildState:
    visited: set[str] = field(default_factory=set)
    groups: dict[str, _GroupDefinition] = field(default_factory=dict)
    # (object, qualified base key) pairs awaiting base property merge
    extensions: list[tuple[InlineObject, str]] = field(default_factory=list)
    # Element declarations per schema, registered after all complexTypes exist
    element_nodes: list[tuple[dict, SchemaScope]] = field(default_factory=list)


class SchemaAstBuilder:
    """Builds a SchemaRegistry from one or more schema nodes."""

    def __init__(self, client: SchemaClient | None = None):
        self.client = client
        self.registry = SchemaRegistry()
        self._state = _BuildState()

    # Entry points

    def add_schema(self, schema_node: dict, namespace_table: dict[str, str] | None = None,
                   location: str | None = None):
        """Process a schema node, following its imports first.

        Args:
            schema_node: Parsed ``schema`` node
            namespace_table: Namespaces inherited from the enclosing document
            location: Location of the document the node came from, used to
                resolve relative schemaLocation attributes
        """
        namespaces = dict(namespace_table or {})
        namespaces.update(get_namespaces_from_node(schema_node))
        scope = SchemaScope(
            target_namespace=get_target_namespace(schema_node),
            namespaces=namespaces,
            qualified=get_attribute(schema_node, "elementFormDefault") == "qualified",
            location=location,
        )

        for prefix, uri in namespaces.items():
            if prefix:
                self.registry.namespaces.setdefault(prefix, uri)

        if location:
            self._state.visited.add(f"{scope.target_namespace or ''}|{location}")
        self.registry.schemas.append(location or f"inline:{scope.target_namespace or '(no namespace)'}")

        self._process_imports(schema_node, scope)

        for group in get_group_nodes(schema_node):
            name = get_attribute(group, "name")
            if name:
                self._state.groups[qualified_key(scope.target_namespace, name)] = _GroupDefinition(group, scope)

        for complex_type in get_complex_type_nodes(schema_node):
            name = get_attribute(complex_type, "name")
            if not name:
                continue
            key = qualified_key(scope.target_namespace, name)
            self.registry.complex_types[key] = self.complex_type_to_object(complex_type, scope)
            logger.debug(f"Registered complexType {key}")

        self._state.element_nodes.extend((element, scope) for element in get_element_nodes(schema_node))

    def build(self) -> SchemaRegistry:
        """Finish the registry: merge extension bases, register elements."""
        for element, scope in self._state.element_nodes:
            self._register_element(element, scope)

        self._merge_extension_bases()

        if not self.registry.elements and self.registry.complex_types:
            logger.debug("No global elements found, exposing complexTypes as elements")
            self.registry.elements.update(self.registry.complex_types)

        logger.info(
            f"Type graph built: {len(self.registry.elements)} elements, "
            f"{len(self.registry.complex_types)} complexTypes from {len(self.registry.schemas)} schema(s)"
        )
        return self.registry

    # Imports

    def _process_imports(self, schema_node: dict, scope: SchemaScope):
        for import_node in get_import_nodes(schema_node):
            schema_location = get_attribute(import_node, "schemaLocation")
            if not schema_location:
                logger.debug(
                    f"Import of {get_attribute(import_node, 'namespace')} has no schemaLocation, skipping"
                )
                continue
            if self.client is None:
                logger.warning(f"No schema client configured, cannot load import {schema_location}")
                continue

            resolved = self.client.resolve_location(scope.location, schema_location)
            import_id = f"{get_attribute(import_node, 'namespace') or ''}|{resolved}"
            if import_id in self._state.visited:
                logger.debug(f"Import already processed, skipping: {import_id}")
                continue
            self._state.visited.add(import_id)

            try:
                document = parse_xml_tree(self.client.load(resolved))
            except (SchemaLoadError, SchemaStructureError) as e:
                logger.warning(f"Could not load imported schema {schema_location}: {e}")
                continue

            imported_schema = get_schema_root(document)
            if imported_schema is None:
                logger.warning(f"Imported document {resolved} has no schema root, skipping")
                continue

            logger.debug(f"Processing imported schema {resolved}")
            self.add_schema(imported_schema, scope.namespaces, resolved)

    # complexType

    def complex_type_to_object(self, node: dict, scope: SchemaScope) -> InlineObject:
        """Convert a complexType (or element with a direct particle) into an InlineObject.

        Raises:
            SchemaStructureError: If the node has element content but none of
                sequence/choice/all/group/simpleContent/complexContent
        """
        obj = InlineObject(namespace=scope.target_namespace, qualified=scope.qualified)
        obj.attributes.update(self._collect_attributes(node))

        sequence = get_sequence_node(node)
        if sequence is not None:
            self._process_particle(sequence, obj, scope)
            return obj

        choice = get_choice_node(node)
        if choice is not None:
            self._process_particle(choice, obj, scope)
            return obj

        all_node = get_all_node(node)
        if all_node is not None:
            self._process_particle(all_node, obj, scope)
            return obj

        group = get_group_node(node)
        if group is not None:
            self._process_group(group, obj, scope)
            return obj

        simple_content = get_simple_content_node(node)
        if simple_content is not None:
            self._process_simple_content(simple_content, obj, scope)
            return obj

        complex_content = get_complex_content_node(node)
        if complex_content is not None:
            self._process_complex_content(complex_content, obj, scope)
            return obj

        unexpected = self._unexpected_children(node)
        if unexpected:
            name = get_attribute(node, "name") or "(anonymous)"
            raise SchemaStructureError(
                f"complexType {name}: no sequence/choice/all/group/simpleContent/complexContent found "
                f"(found: {', '.join(unexpected)})"
            )
        return obj

    @staticmethod
    def _unexpected_children(node: dict) -> list[str]:
        found = []
        for key, value in node.items():
            if key.startswith("xmlns") or key == "#text":
                continue
            is_child = not isinstance(value, str) or ":" in key
            if not is_child:
                continue
            if any(matches_tag(key, tag) for tag in NON_STRUCTURAL_TAGS):
                continue
            found.append(key)
        return found

    # Particles

    def _process_particle(self, node: dict, obj: InlineObject, scope: SchemaScope):
        """Process sequence/choice/all: nested particles first, then direct elements."""
        for tag in PARTICLE_TAGS:
            for nested in find_children(node, tag):
                self._process_particle(nested, obj, scope)
        for group in get_group_nodes(node):
            self._process_group(group, obj, scope)
        for element in get_element_nodes(node):
            self._add_element_property(element, obj, scope)

    def _process_group(self, node: dict, obj: InlineObject, scope: SchemaScope):
        ref = get_attribute(node, "ref")
        if ref:
            key = self._qualify_name(ref, scope)
            definition = self._state.groups.get(key) or self._find_group_by_local_name(local_name(ref))
            if definition is None:
                logger.warning(f"Group {ref} not found, skipping")
                return
            self._process_group_body(definition.node, obj, definition.scope)
            return
        self._process_group_body(node, obj, scope)

    def _process_group_body(self, node: dict, obj: InlineObject, scope: SchemaScope):
        elements = get_element_nodes(node)
        if elements:
            for element in elements:
                self._add_element_property(element, obj, scope)
            return
        for tag in PARTICLE_TAGS:
            nested = find_children(node, tag)
            if nested:
                self._process_particle(nested[0], obj, scope)
                return

    def _find_group_by_local_name(self, name: str) -> Optional[_GroupDefinition]:
        for key, definition in self._state.groups.items():
            if local_name(key) == name:
                return definition
        return None

    # Content models

    def _process_simple_content(self, node: dict, obj: InlineObject, scope: SchemaScope):
        derivation = get_extension_node(node)
        if derivation is None:
            derivation = get_restriction_node(node)
        if derivation is None:
            return
        base = get_attribute(derivation, "base")
        if base:
            obj.base = base
        obj.attributes.update(self._collect_attributes(derivation))
        sequence = get_sequence_node(derivation)
        if sequence is not None:
            self._process_particle(sequence, obj, scope)

    def _process_complex_content(self, node: dict, obj: InlineObject, scope: SchemaScope):
        extension = get_extension_node(node)
        derivation = extension if extension is not None else get_restriction_node(node)
        if derivation is None:
            return
        base = get_attribute(derivation, "base")
        if base:
            obj.base = base
            # Restrictions restate the content they keep, only extensions inherit
            if extension is not None:
                base_key = self._qualify_name(base, scope)
                if local_name(base_key) != "anyType":
                    self._state.extensions.append((obj, base_key))

        for tag in PARTICLE_TAGS:
            for particle in find_children(derivation, tag):
                self._process_particle(particle, obj, scope)
        for group in get_group_nodes(derivation):
            self._process_group(group, obj, scope)
        obj.attributes.update(self._collect_attributes(derivation))

    def _merge_extension_bases(self):
        """Prepend inherited properties for complexContent extensions."""
        merged: set[int] = set()

        def merge(obj: InlineObject, base_key: str, chain: set[str]):
            if id(obj) in merged:
                return
            base = self.registry.complex_types.get(base_key) or self._find_type_by_local_name(base_key)
            if base is None:
                logger.warning(f"Base type {base_key} not found, inherited properties omitted")
                merged.add(id(obj))
                return
            if base_key in chain:
                logger.warning(f"Circular extension through {base_key}, stopping inheritance")
                merged.add(id(obj))
                return
            for pending_obj, pending_base in self._state.extensions:
                if pending_obj is base:
                    merge(base, pending_base, chain | {base_key})
            inherited = {key: prop for key, prop in base.properties.items() if key not in obj.properties}
            obj.properties = {**inherited, **obj.properties}
            for name, attr_type in base.attributes.items():
                obj.attributes.setdefault(name, attr_type)
            merged.add(id(obj))

        for obj, base_key in self._state.extensions:
            merge(obj, base_key, set())

    def _find_type_by_local_name(self, key: str) -> Optional[InlineObject]:
        name = local_name(key)
        for candidate_key, candidate in self.registry.complex_types.items():
            if local_name(candidate_key) == name:
                return candidate
        return None

    @staticmethod
    def _collect_attributes(node: dict) -> dict[str, str]:
        attributes: dict[str, str] = {}
        for attribute in get_attribute_nodes(node):
            name = get_attribute(attribute, "name")
            if not name:
                continue
            attributes[name] = (
                get_attribute(attribute, "type") or get_attribute(attribute, "base") or DEFAULT_ATTRIBUTE_TYPE
            )
        return attributes

    # Elements

    def _add_element_property(self, element: dict, obj: InlineObject, scope: SchemaScope):
        min_occurs = get_attribute(element, "minOccurs") or DEFAULT_OCCURS
        max_occurs = get_attribute(element, "maxOccurs") or DEFAULT_OCCURS

        ref = get_attribute(element, "ref")
        if ref:
            target = self._qualify_name(ref, scope)
            ref_namespace = target.rsplit(":", 1)[0] if ":" in target else scope.target_namespace
            obj.properties[local_name(ref)] = PropertyDescriptor(
                type=Reference(target),
                min_occurs=min_occurs,
                max_occurs=max_occurs,
                # Global elements always live in their own namespace
                qualified=True,
                namespace=ref_namespace,
            )
            return

        name = get_attribute(element, "name")
        if not name:
            # xs:any and friends carry no addressable name
            return

        form = get_attribute(element, "form")
        qualified = form == "qualified" if form else scope.qualified
        obj.properties[name] = PropertyDescriptor(
            type=self._element_type(element, scope),
            min_occurs=min_occurs,
            max_occurs=max_occurs,
            qualified=qualified,
            namespace=scope.target_namespace,
        )

    def _element_type(self, element: dict, scope: SchemaScope) -> TypeNode:
        type_name = get_attribute(element, "type")
        if type_name:
            return self.resolve_type_name(type_name, scope)

        inline_types = get_complex_type_nodes(element)
        if inline_types:
            return self.complex_type_to_object(inline_types[0], scope)

        if get_sequence_node(element) is not None:
            return self.complex_type_to_object(element, scope)

        simple_types = get_simple_type_nodes(element)
        if simple_types:
            restriction = get_restriction_node(simple_types[0])
            base = get_attribute(restriction, "base") if restriction is not None else None
            if base:
                return self.resolve_type_name(base, scope)
            return Primitive("string")

        return Primitive("anyType")

    def resolve_type_name(self, type_name: str, scope: SchemaScope) -> TypeNode:
        """Resolve a ``prefix:Name`` type attribute to a Primitive or Reference."""
        key = self._qualify_name(type_name, scope)
        if key.rsplit(":", 1)[0] == XML_SCHEMA_URI:
            return Primitive(local_name(key))
        return Reference(key)

    def _qualify_name(self, name: str, scope: SchemaScope) -> str:
        if ":" in name:
            prefix, local = name.split(":", 1)
            uri = scope.namespaces.get(prefix)
            if uri is None:
                if prefix in XML_SCHEMA_PREFIXES:
                    return f"{XML_SCHEMA_URI}:{local}"
                logger.warning(
                    f"Unknown namespace prefix {prefix!r} in {name!r}, using target namespace"
                )
                uri = scope.target_namespace
            return qualified_key(uri, local)
        default_namespace = scope.namespaces.get("")
        if default_namespace == XML_SCHEMA_URI and name not in XML_SCHEMA_TYPES:
            # Unprefixed user types in schemas whose default namespace is XML Schema
            default_namespace = None
        return qualified_key(default_namespace or scope.target_namespace, name)

    def _register_element(self, element: dict, scope: SchemaScope):
        name = get_attribute(element, "name")
        if not name:
            return
        key = qualified_key(scope.target_namespace, name)

        type_name = get_attribute(element, "type")
        inline_types = get_complex_type_nodes(element)
        if inline_types or (not type_name and get_sequence_node(element) is not None):
            node = inline_types[0] if inline_types else element
            obj = self.complex_type_to_object(node, scope)
            obj.qualified = scope.qualified
            self.registry.elements[key] = obj
            self.registry.complex_types.setdefault(key, obj)
        elif type_name:
            target = self.resolve_type_name(type_name, scope)
            self.registry.elements[key] = Reference(
                target.name if isinstance(target, Reference) else f"{XML_SCHEMA_URI}:{target.name}",
                namespace=scope.target_namespace,
                qualified=scope.qualified,
            )
        else:
            self.registry.elements[key] = Reference(
                f"{XML_SCHEMA_URI}:anyType",
                namespace=scope.target_namespace,
                qualified=scope.qualified,
            )
        logger.debug(f"Registered element {key}")


def describe_schema_set(registry: SchemaRegistry, schema_nodes: list[dict]) -> str:
    """Build the diagnostic shown when a schema set yields nothing usable."""
    lines = ["No elements or complexTypes were found in the WSDL types section or its imports."]
    lines.append(f"Schemas processed: {', '.join(registry.schemas) or '(none)'}")

    complex_type_names = [
        get_attribute(node, "name") or "(anonymous)"
        for schema in schema_nodes
        for node in get_complex_type_nodes(schema)
    ]
    lines.append(f"complexType declarations: {', '.join(complex_type_names) or '(none)'}")

    element_details = []
    for schema in schema_nodes:
        for element in get_element_nodes(schema):
            details = [
                f"{attr}={get_attribute(element, attr)}"
                for attr in ("name", "type", "ref")
                if get_attribute(element, attr)
            ]
            element_details.append(" ".join(details) or "(no attributes)")
    lines.append(f"element declarations: {'; '.join(element_details) or '(none)'}")

    declared = sorted(f"{prefix}={uri}" for prefix, uri in registry.namespaces.items())
    lines.append(f"Namespaces declared: {', '.join(declared) or '(none)'}")
    lines.append(
        "Check that every xsd:import has a reachable schemaLocation and that the "
        "schema declares its types inside <types><schema>...</schema></types>."
    )
    return "\n".join(lines)


def validate_registry(registry: SchemaRegistry, schema_nodes: list[dict]):
    """Raise EmptySchemaError when nothing usable was found."""
    if registry.is_empty():
        raise EmptySchemaError(describe_schema_set(registry, schema_nodes))


def build_type_graph(schema_document: Any, namespace_table: dict[str, str] | None = None,
                     location: str | None = None, client: SchemaClient | None = None) -> SchemaRegistry:
    """Build a validated SchemaRegistry from one schema node or a list of them.

    Args:
        schema_document: A parsed ``schema`` node, or a list of them (WSDL
            ``types`` sections may hold several)
        namespace_table: Namespaces declared by the enclosing document
        location: Document location for resolving relative imports
        client: Loader for imported schema documents

    Returns:
        SchemaRegistry with elements and complexTypes

    Raises:
        EmptySchemaError: If no elements or complexTypes were found
    """
    schema_nodes = schema_document if isinstance(schema_document, list) else [schema_document]
    builder = SchemaAstBuilder(client)
    for schema_node in schema_nodes:
        builder.add_schema(schema_node, namespace_table, location)
    registry = builder.build()
    validate_registry(registry, schema_nodes)
    return registry
