#!/usr/bin/env python3
"""Convert XML documents into nested dictionaries.

The resulting tree keeps the document's own tag prefixes ("xs:sequence"),
stores attributes and namespace declarations ("xmlns:tns") as plain string
keys, collapses text-only elements to their text, and turns repeated sibling
tags into lists. The accessors in node_accessors work on this shape.
"""

import io
import logging
from typing import Any
from xml.etree.ElementTree import ParseError

import defusedxml.ElementTree as ET
from defusedxml import DefusedXmlException

from .exceptions import SchemaStructureError

logger = logging.getLogger(__name__)

TEXT_KEY = "#text"


def _qualify(clark_name: str, scope: dict[str, str]) -> str:
    """Turn "{uri}local" back into "prefix:local" using the in-scope declarations."""
    if not clark_name.startswith("{"):
        return clark_name
    uri, local = clark_name[1:].split("}", 1)
    if scope.get("") == uri:
        return local
    for prefix, bound_uri in reversed(list(scope.items())):
        if bound_uri == uri and prefix:
            return f"{prefix}:{local}"
    if uri == "http://www.w3.org/XML/1998/namespace":
        return f"xml:{local}"
    return local


def _add_child(parent: dict, key: str, value: Any):
    if key in parent:
        existing = parent[key]
        if isinstance(existing, list):
            existing.append(value)
        else:
            parent[key] = [existing, value]
    else:
        parent[key] = value


def parse_xml_tree(content: bytes) -> dict[str, Any]:
    """Parse an XML document into the nested dictionary shape.

    Args:
        content: Raw document bytes

    Returns:
        Dictionary with the root tag as its single key

    Raises:
        SchemaStructureError: If the document is not well-formed XML
    """
    # Each frame: (tag, node dict, namespace scope)
    stack: list[tuple[str, dict, dict[str, str]]] = []
    pending_ns: list[tuple[str, str]] = []
    root: dict[str, Any] = {}

    try:
        for event, item in ET.iterparse(io.BytesIO(content), events=("start-ns", "start", "end")):
            if event == "start-ns":
                pending_ns.append(item)
                continue

            if event == "start":
                scope = dict(stack[-1][2]) if stack else {}
                node: dict[str, Any] = {}
                for prefix, uri in pending_ns:
                    scope[prefix] = uri
                    node[f"xmlns:{prefix}" if prefix else "xmlns"] = uri
                pending_ns = []
                for name, value in item.attrib.items():
                    node[_qualify(name, scope)] = value
                stack.append((_qualify(item.tag, scope), node, scope))
                continue

            tag, node, _ = stack.pop()
            text = (item.text or "").strip()

            if node:
                if text:
                    node[TEXT_KEY] = text
                value: Any = node
            else:
                value = text

            if stack:
                _add_child(stack[-1][1], tag, value)
            else:
                root[tag] = value

            # Children were folded into the dict above, release them
            item.clear()
    except (ParseError, DefusedXmlException) as e:
        raise SchemaStructureError(f"Document is not well-formed XML: {e}") from e

    return root
