#!/usr/bin/env python3
"""Type Graph model shared by the builder, resolver, flattener and markup generator.

A type is one of three variants:

- ``Primitive``: an XML Schema built-in (``string``, ``int``, ...)
- ``Reference``: a ``"namespaceURI:localName"`` pointer to a named type or
  element; stored in the element registry it acts as a wrapper and carries the
  element's own namespace metadata
- ``InlineObject``: ordered properties plus namespace/base/attribute metadata
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Union

XML_SCHEMA_URI = "http://www.w3.org/2001/XMLSchema"
DEFAULT_OCCURS = "1"

# XML Schema built-in -> host (TypeScript) primitive
XML_SCHEMA_TYPES: dict[str, str] = {
    "string": "string",
    "normalizedString": "string",
    "token": "string",
    "language": "string",
    "Name": "string",
    "NCName": "string",
    "NMTOKEN": "string",
    "NMTOKENS": "string",
    "QName": "string",
    "ID": "string",
    "IDREF": "string",
    "IDREFS": "string",
    "ENTITY": "string",
    "anyURI": "string",
    "base64Binary": "string",
    "hexBinary": "string",
    "anyType": "string",
    "anySimpleType": "string",
    "int": "number",
    "integer": "number",
    "long": "number",
    "short": "number",
    "byte": "number",
    "float": "number",
    "double": "number",
    "decimal": "number",
    "nonNegativeInteger": "number",
    "nonPositiveInteger": "number",
    "positiveInteger": "number",
    "negativeInteger": "number",
    "unsignedLong": "number",
    "unsignedInt": "number",
    "unsignedShort": "number",
    "unsignedByte": "number",
    "boolean": "boolean",
    "date": "Date",
    "time": "Date",
    "dateTime": "Date",
    "duration": "string",
    "gYearMonth": "string",
    "gYear": "string",
    "gMonthDay": "string",
    "gDay": "string",
    "gMonth": "string",
}

HOST_PRIMITIVES = frozenset(XML_SCHEMA_TYPES.values())

_WORD_SPLIT = re.compile(r"[^0-9A-Za-z]+")


@dataclass(frozen=True)
class Primitive:
    """XML Schema built-in type, identified by local name."""
    name: str

    @property
    def host_type(self) -> str:
        return XML_SCHEMA_TYPES.get(self.name, "string")


@dataclass
class Reference:
    """Unresolved pointer to a named type or element."""
    name: str                               # "namespaceURI:localName"
    namespace: Optional[str] = None         # Owning element namespace when used as a wrapper
    qualified: Optional[bool] = None

    @property
    def local_name(self) -> str:
        return local_name(self.name)


@dataclass
class PropertyDescriptor:
    """One child element of an inline object."""
    type: "TypeNode"
    min_occurs: str = DEFAULT_OCCURS
    max_occurs: str = DEFAULT_OCCURS
    qualified: Optional[bool] = None
    namespace: Optional[str] = None

    @property
    def is_array(self) -> bool:
        return self.max_occurs != DEFAULT_OCCURS

    @property
    def is_optional(self) -> bool:
        return not self.is_array and self.min_occurs != DEFAULT_OCCURS

    @property
    def modifier(self) -> str:
        return type_modifier(self.min_occurs, self.max_occurs)


# Identity semantics: caches key inline objects by id
@dataclass(eq=False)
class InlineObject:
    """Structured type: ordered properties plus schema metadata."""
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    namespace: Optional[str] = None
    qualified: Optional[bool] = None
    base: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)

    def single_property(self) -> Optional[tuple[str, PropertyDescriptor]]:
        if len(self.properties) != 1:
            return None
        return next(iter(self.properties.items()))


TypeNode = Union[Primitive, Reference, InlineObject]


@dataclass
class SchemaRegistry:
    """Global elements and complexTypes of a schema set, keyed "namespaceURI:localName"."""
    elements: dict[str, TypeNode] = field(default_factory=dict)
    complex_types: dict[str, InlineObject] = field(default_factory=dict)
    namespaces: dict[str, str] = field(default_factory=dict)
    schemas: list[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.elements and not self.complex_types

    def available_keys(self) -> list[str]:
        return sorted(set(self.elements) | set(self.complex_types))


def local_name(name: str) -> str:
    """Local part of "namespaceURI:local" or "prefix:local"."""
    return name.rsplit(":", 1)[-1]


def namespace_of(name: str) -> Optional[str]:
    """Namespace part of "namespaceURI:local", or None when unqualified."""
    if ":" not in name:
        return None
    return name.rsplit(":", 1)[0]


def qualified_key(namespace: Optional[str], name: str) -> str:
    return f"{namespace}:{name}" if namespace else name


def type_modifier(min_occurs: str = DEFAULT_OCCURS, max_occurs: str = DEFAULT_OCCURS) -> str:
    """'[]' for repeated, '?' for optional, '' otherwise."""
    if (max_occurs or DEFAULT_OCCURS) != DEFAULT_OCCURS:
        return "[]"
    if (min_occurs or DEFAULT_OCCURS) != DEFAULT_OCCURS:
        return "?"
    return ""


def to_pascal_case(value: str) -> str:
    parts = [part for part in _WORD_SPLIT.split(local_name(value)) if part]
    return "".join(part[0].upper() + part[1:] for part in parts)


def to_camel_case(value: str) -> str:
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def is_xml_schema_name(name: str) -> bool:
    """True for "http://www.w3.org/2001/XMLSchema:local" keys."""
    return namespace_of(name) == XML_SCHEMA_URI


class RunContext:
    """Per-run memoization shared by every component of one generator run.

    Holds the prefix-by-URI assignments (and their reverse index, which keeps
    them bijective) and split results for qualified names.
    """

    def __init__(self):
        self.prefix_by_uri: dict[str, str] = {}
        self.uri_by_prefix: dict[str, str] = {}
        self._local_names: dict[str, str] = {}

    def local_name(self, name: str) -> str:
        cached = self._local_names.get(name)
        if cached is None:
            cached = local_name(name)
            self._local_names[name] = cached
        return cached
