#!/usr/bin/env python3
"""Prefix-agnostic lookups over parsed WSDL/XSD trees.

Documents are free to bind the XML Schema and WSDL namespaces to any prefix
(xs:, xsd:, none at all), so every accessor matches tag names as
``(prefix:)?local`` and never looks at the prefix itself.
"""

import re
from functools import lru_cache
from typing import Any, Optional

Node = dict[str, Any]

XMLNS_PREFIX = "xmlns:"


@lru_cache(maxsize=None)
def _tag_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"^(?:[\w.-]+:)?{re.escape(tag)}$")


def matches_tag(key: str, tag: str) -> bool:
    """Check whether a tree key is the given local tag under any prefix."""
    return bool(_tag_pattern(tag).match(key))


def as_list(value: Any) -> list:
    """Normalize a single child, a list of children or nothing into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def find_child(node: Any, tag: str) -> Any:
    """Return the first child value for ``tag`` (any prefix), or None."""
    if not isinstance(node, dict):
        return None
    for key, value in node.items():
        if matches_tag(key, tag):
            return value
    return None


def find_children(node: Any, tag: str) -> list[Node]:
    """Return every child dict for ``tag`` (any prefix), in document order."""
    if not isinstance(node, dict):
        return []
    children: list[Node] = []
    for key, value in node.items():
        if matches_tag(key, tag):
            for child in as_list(value):
                if isinstance(child, dict):
                    children.append(child)
                elif child == "":
                    # Empty elements parse to "", keep them addressable
                    children.append({})
    return children


def get_attribute(node: Any, name: str) -> Optional[str]:
    if not isinstance(node, dict):
        return None
    value = node.get(name)
    return value if isinstance(value, str) else None


def _single(node: Any, tag: str) -> Optional[Node]:
    children = find_children(node, tag)
    return children[0] if children else None


# Particles

def get_sequence_node(node: Any) -> Optional[Node]:
    return _single(node, "sequence")


def get_choice_node(node: Any) -> Optional[Node]:
    return _single(node, "choice")


def get_all_node(node: Any) -> Optional[Node]:
    return _single(node, "all")


def get_group_node(node: Any) -> Optional[Node]:
    return _single(node, "group")


# Content models

def get_simple_content_node(node: Any) -> Optional[Node]:
    return _single(node, "simpleContent")


def get_complex_content_node(node: Any) -> Optional[Node]:
    return _single(node, "complexContent")


def get_extension_node(node: Any) -> Optional[Node]:
    return _single(node, "extension")


def get_restriction_node(node: Any) -> Optional[Node]:
    return _single(node, "restriction")


# Schema members

def get_element_nodes(node: Any) -> list[Node]:
    return find_children(node, "element")


def get_attribute_nodes(node: Any) -> list[Node]:
    return find_children(node, "attribute")


def get_complex_type_nodes(node: Any) -> list[Node]:
    return find_children(node, "complexType")


def get_simple_type_nodes(node: Any) -> list[Node]:
    return find_children(node, "simpleType")


def get_group_nodes(node: Any) -> list[Node]:
    return find_children(node, "group")


def get_import_nodes(node: Any) -> list[Node]:
    """Return import and include declarations of a schema."""
    return find_children(node, "import") + find_children(node, "include")


# WSDL structure

def get_definitions_node(document: Any) -> Optional[Node]:
    return _single(document, "definitions")


def get_schema_root(document: Any) -> Optional[Node]:
    return _single(document, "schema")


def get_types_node(definitions: Any) -> Optional[Node]:
    return _single(definitions, "types")


def get_all_schema_nodes(types_node: Any) -> list[Node]:
    return find_children(types_node, "schema")


def get_message_nodes(definitions: Any) -> list[Node]:
    return find_children(definitions, "message")


def get_port_type_node(definitions: Any) -> Optional[Node]:
    return _single(definitions, "portType")


def get_operation_nodes(node: Any) -> list[Node]:
    return find_children(node, "operation")


def get_input_node(operation: Any) -> Optional[Node]:
    return _single(operation, "input")


def get_output_node(operation: Any) -> Optional[Node]:
    return _single(operation, "output")


def get_part_nodes(message: Any) -> list[Node]:
    return find_children(message, "part")


def get_binding_nodes(definitions: Any) -> list[Node]:
    return find_children(definitions, "binding")


def get_header_nodes(node: Any) -> list[Node]:
    return find_children(node, "header")


# Namespaces

def get_namespaces_from_node(node: Any) -> dict[str, str]:
    """Collect namespace declarations of a node.

    Args:
        node: Tree node carrying ``xmlns``/``xmlns:prefix`` keys

    Returns:
        Mapping prefix -> URI; the default namespace is stored under ""
    """
    namespaces: dict[str, str] = {}
    if not isinstance(node, dict):
        return namespaces
    for key, value in node.items():
        if not isinstance(value, str):
            continue
        if key.startswith(XMLNS_PREFIX):
            namespaces[key[len(XMLNS_PREFIX):]] = value
        elif key == "xmlns":
            namespaces[""] = value
    return namespaces


def get_target_namespace(node: Any) -> Optional[str]:
    return get_attribute(node, "targetNamespace")
