#!/usr/bin/env python3
"""Interface/props flattener.

Produces, for one root element, the props descriptor a caller fills in and the
deduplicated interface descriptors of every type reachable from it. Wrapper
chains at the root (an object whose only property is another object) are
lifted so the props expose the payload fields directly.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from ....models.models import InterfaceDescriptor, InterfaceProperty, PrimitiveAlias, PropsDescriptor
from .reference_resolver import TypeReferenceResolver
from .type_graph import (
    XML_SCHEMA_TYPES,
    InlineObject,
    Primitive,
    PropertyDescriptor,
    Reference,
    local_name,
    to_camel_case,
    to_pascal_case,
)

logger = logging.getLogger(__name__)


@dataclass
class FlattenResult:
    props: PropsDescriptor
    interfaces: list[InterfaceDescriptor] = field(default_factory=list)


def leaf_host_type(obj: InlineObject) -> Optional[str]:
    """Host type of an object without child elements, else None.

    simpleContent types map through their base; empty types carry text.
    """
    if obj.properties:
        return None
    if not obj.base:
        return "string"
    return XML_SCHEMA_TYPES.get(local_name(obj.base), "string")


class _InterfaceSet:
    """Interfaces collected during one traversal, deduplicated by name."""

    def __init__(self):
        self.items: list[InterfaceDescriptor] = []
        self.names: set[str] = set()

    def __contains__(self, name: str) -> bool:
        return name in self.names

    def get(self, name: str) -> Optional[InterfaceDescriptor]:
        return next((item for item in self.items if item.name == name), None)

    def add(self, interface: InterfaceDescriptor) -> bool:
        if interface.name in self.names:
            return False
        self.names.add(interface.name)
        self.items.append(interface)
        return True


class InterfaceFlattener:
    """Builds props and interface descriptors from the Type Graph."""

    def __init__(self, resolver: TypeReferenceResolver):
        self.resolver = resolver

    def flatten(self, request_type: str, type_object: InlineObject,
                reachable_types: Iterable[str] | None = None,
                props_name: str | None = None) -> FlattenResult:
        """Flatten a root element.

        Args:
            request_type: Qualified name of the root element
            type_object: Resolved object of the root element
            reachable_types: Additional type keys whose interfaces must be emitted
            props_name: Name of the props descriptor, "<Root>Props" by default

        Returns:
            FlattenResult with props and interfaces
        """
        root_name = to_pascal_case(local_name(request_type))
        props_object = self.expand(type_object)
        props = PropsDescriptor(
            name=props_name or f"{root_name}Props",
            properties=self.interface_properties(props_object),
        )

        interfaces = _InterfaceSet()
        self._add_interface(root_name, type_object, interfaces)

        for key in reachable_types or ():
            node = self.resolver.registry.complex_types.get(key)
            if isinstance(node, InlineObject):
                self._add_interface(to_pascal_case(local_name(key)), node, interfaces)

        # Payload types lifted into the props are still declared
        if props_object is not type_object:
            self._collect_nested(props_object, interfaces)

        aliases = {alias.name for alias in self.primitive_type_aliases(props_object)}
        result = [interface for interface in interfaces.items if interface.name not in aliases]
        logger.debug(f"Flattened {request_type}: {len(props.properties)} props, {len(result)} interfaces")
        return FlattenResult(props=props, interfaces=result)

    def expand(self, obj: InlineObject) -> InlineObject:
        """Follow the single-property wrapper chain from ``obj``."""
        seen = {id(obj)}
        current = obj
        while True:
            target = self.resolver.expansion_target(current)
            if target is None or id(target[2]) in seen:
                return current
            current = target[2]
            seen.add(id(current))

    def interface_properties(self, obj: InlineObject) -> list[InterfaceProperty]:
        return [
            InterfaceProperty(
                name=to_camel_case(key),
                type=self.resolve_type_name(key, prop.type),
                modifier=prop.modifier,
            )
            for key, prop in obj.properties.items()
        ]

    def resolve_type_name(self, prop_key: str, node) -> str:
        """Host primitive or interface name for a property's type."""
        if isinstance(node, Primitive):
            return node.host_type

        if isinstance(node, InlineObject):
            return leaf_host_type(node) or to_pascal_case(local_name(prop_key))

        if isinstance(node, Reference):
            resolution = self.resolver.resolve(node.name)
            if resolution is None:
                logger.warning(
                    f"Type {node.name} of {prop_key} could not be resolved, "
                    f"using {to_pascal_case(local_name(prop_key))}"
                )
                return to_pascal_case(local_name(prop_key))
            if isinstance(resolution.node, Primitive):
                return resolution.node.host_type
            host = leaf_host_type(resolution.node)
            if host:
                return host
            return to_pascal_case(local_name(resolution.key or node.name))

        return "string"

    def primitive_type_aliases(self, obj: InlineObject) -> list[PrimitiveAlias]:
        """Aliases for top-level properties with primitive types."""
        aliases = []
        for key, prop in obj.properties.items():
            host = self._primitive_host(prop)
            if host is not None:
                aliases.append(PrimitiveAlias(name=to_pascal_case(local_name(key)), host_type=host))
        return aliases

    def _primitive_host(self, prop: PropertyDescriptor) -> Optional[str]:
        node = prop.type
        if isinstance(node, Primitive):
            return node.host_type
        if isinstance(node, Reference):
            resolution = self.resolver.resolve(node.name)
            if resolution is not None and isinstance(resolution.node, Primitive):
                return resolution.node.host_type
        return None

    # Interfaces

    def _add_interface(self, name: str, obj: InlineObject, interfaces: _InterfaceSet):
        if name in interfaces:
            return
        interfaces.add(InterfaceDescriptor(name=name, properties=self.interface_properties(obj)))
        self._collect_nested(obj, interfaces)

    def _collect_nested(self, obj: InlineObject, interfaces: _InterfaceSet):
        for key, prop in obj.properties.items():
            node = prop.type
            if isinstance(node, InlineObject):
                if node.properties:
                    name = to_pascal_case(local_name(key))
                    existing = interfaces.get(name)
                    if existing is not None and existing.properties != self.interface_properties(node):
                        logger.warning(f"Inline types named {name} differ in shape, keeping the first interface")
                    self._add_interface(name, node, interfaces)
            elif isinstance(node, Reference):
                resolution = self.resolver.resolve(node.name)
                if resolution is None or not resolution.is_object:
                    continue
                if leaf_host_type(resolution.node):
                    continue
                name = to_pascal_case(local_name(resolution.key or node.name))
                self._add_interface(name, resolution.node, interfaces)


def flatten(request_type: str, type_object: InlineObject, resolver: TypeReferenceResolver,
            reachable_types: Iterable[str] | None = None) -> FlattenResult:
    return InterfaceFlattener(resolver).flatten(request_type, type_object, reachable_types)
