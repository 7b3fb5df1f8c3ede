#!/usr/bin/env python3
"""Type reference resolution over the element registry and the ComplexTypePool.

A reference such as ``"http://ex/ns:Payload"`` is looked up by exact key first
and then by local name, so documents that mix prefixes or declare a type in a
different namespace than they use it from still resolve. Element entries that
merely point at a named type (wrappers) are followed until a concrete
InlineObject or Primitive is reached.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .type_graph import (
    InlineObject,
    Primitive,
    PropertyDescriptor,
    Reference,
    RunContext,
    SchemaRegistry,
    TypeNode,
    is_xml_schema_name,
)

logger = logging.getLogger(__name__)

ELEMENTS = "elements"
COMPLEX_TYPES = "complex_types"


@dataclass
class Resolution:
    """Outcome of resolving a reference."""
    node: TypeNode                          # InlineObject or Primitive, never a Reference
    key: Optional[str] = None               # Key of the entry the node came from
    wrapper: Optional[Reference] = None     # First element wrapper followed, if any
    circular: bool = False                  # Chain re-entered itself; render properties unwrapped

    @property
    def is_object(self) -> bool:
        return isinstance(self.node, InlineObject)


class TypeReferenceResolver:
    """Resolves string references against one SchemaRegistry."""

    def __init__(self, registry: SchemaRegistry, context: RunContext | None = None):
        self.registry = registry
        self.context = context or RunContext()
        self._reported_ambiguous: set[str] = set()
        self._by_local_name: dict[str, dict[str, list[str]]] = {
            ELEMENTS: self._index(registry.elements),
            COMPLEX_TYPES: self._index(registry.complex_types),
        }

    def _index(self, entries: Iterable[str]) -> dict[str, list[str]]:
        index: dict[str, list[str]] = {}
        for key in entries:
            index.setdefault(self.context.local_name(key), []).append(key)
        return index

    def _source(self, name: str) -> dict[str, TypeNode]:
        return self.registry.elements if name == ELEMENTS else self.registry.complex_types

    def lookup(self, ref: str, prefer_types: bool = False,
               exclude: Iterable[tuple[str, str]] = ()) -> Optional[tuple[str, str, TypeNode]]:
        """Find the entry a reference names.

        Order: exact key in the registry, exact key in the pool, local name in
        the registry, local name in the pool. ``prefer_types`` swaps registry
        and pool, which is what a wrapper's type pointer needs.

        Args:
            ref: "namespaceURI:localName" reference
            prefer_types: Search the ComplexTypePool before the element registry
            exclude: (source, key) pairs that must not be returned

        Returns:
            (source, key, node) or None when nothing matches
        """
        excluded = set(exclude)
        sources = (COMPLEX_TYPES, ELEMENTS) if prefer_types else (ELEMENTS, COMPLEX_TYPES)

        for source in sources:
            entries = self._source(source)
            if ref in entries and (source, ref) not in excluded:
                return source, ref, entries[ref]

        name = self.context.local_name(ref)
        for source in sources:
            candidates = [
                key for key in self._by_local_name[source].get(name, [])
                if (source, key) not in excluded
            ]
            if not candidates:
                continue
            if len(candidates) > 1 and name not in self._reported_ambiguous:
                self._reported_ambiguous.add(name)
                logger.warning(
                    f"Reference {ref} matches several types by local name: "
                    f"{', '.join(candidates)}; using {candidates[0]}"
                )
            key = candidates[0]
            return source, key, self._source(source)[key]
        return None

    def resolve(self, ref: str) -> Optional[Resolution]:
        """Resolve a reference to a concrete node, following wrappers.

        Returns:
            Resolution, or None when the reference cannot be found
        """
        if is_xml_schema_name(ref):
            return Resolution(Primitive(self.context.local_name(ref)), ref)

        origin = self.context.local_name(ref)
        seen: set[tuple[str, str]] = set()
        wrapper: Optional[Reference] = None
        current = ref
        prefer_types = False

        while True:
            found = self.lookup(current, prefer_types, seen)
            if found is None:
                return None

            source, key, node = found
            seen.add((source, key))

            if isinstance(node, Reference):
                if wrapper is None:
                    wrapper = node
                if is_xml_schema_name(node.name):
                    return Resolution(Primitive(node.local_name), key, wrapper)
                if node.local_name == origin:
                    # element Foo of type Foo: the chain re-enters the origin
                    return self._circular(node.name, origin, wrapper)
                current = node.name
                prefer_types = True
                continue

            return Resolution(node, key, wrapper)

    def _circular(self, target: str, name: str, wrapper: Optional[Reference]) -> Optional[Resolution]:
        if target in self.registry.complex_types:
            key = target
        else:
            keys = self._by_local_name[COMPLEX_TYPES].get(name, [])
            if not keys:
                logger.warning(f"Reference to {name} loops back to itself and no complexType {name} exists")
                return None
            key = keys[0]
        logger.debug(f"Circular reference through {name}, unwrapping {key}")
        return Resolution(self.registry.complex_types[key], key, wrapper, circular=True)

    def expansion_target(self, obj: InlineObject) -> Optional[tuple[str, PropertyDescriptor, InlineObject]]:
        """Return the payload of a single-property wrapper, or None.

        A wrapper is an object whose only property is a non-repeated object,
        either inline or a reference resolving to one with properties.
        """
        single = obj.single_property()
        if single is None:
            return None
        key, prop = single
        if prop.is_array:
            return None
        node = prop.type
        if isinstance(node, InlineObject):
            return (key, prop, node) if node.properties else None
        if isinstance(node, Reference):
            resolution = self.resolve(node.name)
            if resolution is not None and resolution.is_object and resolution.node.properties:
                return key, prop, resolution.node
        return None

    def find_referenced_types(self, root: InlineObject, visited: set[str] | None = None) -> set[str]:
        """Collect keys of every named type reachable from ``root``.

        Args:
            root: Object to start from
            visited: Per-traversal set of keys already collected; extended in place

        Returns:
            The visited set
        """
        visited = set() if visited is None else visited
        self._collect(root, visited, set())
        return visited

    def _collect(self, obj: InlineObject, visited: set[str], walked: set[int]):
        if id(obj) in walked:
            return
        walked.add(id(obj))
        for prop in obj.properties.values():
            node = prop.type
            if isinstance(node, InlineObject):
                self._collect(node, visited, walked)
            elif isinstance(node, Reference):
                resolution = self.resolve(node.name)
                if resolution is None or not resolution.is_object or resolution.key in visited:
                    continue
                visited.add(resolution.key)
                self._collect(resolution.node, visited, walked)


def resolve_reference(ref: str, registry: SchemaRegistry,
                      complex_type_pool: dict[str, InlineObject] | None = None) -> Optional[TypeNode]:
    """Resolve ``ref`` to the TypeNode it names, or None.

    A pool given separately from the registry's own is searched in its place.
    """
    if complex_type_pool is not None and complex_type_pool is not registry.complex_types:
        registry = SchemaRegistry(
            elements=registry.elements,
            complex_types=complex_type_pool,
            namespaces=registry.namespaces,
            schemas=registry.schemas,
        )
    resolution = TypeReferenceResolver(registry).resolve(ref)
    return resolution.node if resolution else None
