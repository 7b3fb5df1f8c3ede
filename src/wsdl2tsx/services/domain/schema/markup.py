#!/usr/bin/env python3
"""Markup generator.

Walks the Type Graph from a root element and emits the JSX body that
serializes a props object into the SOAP payload. Qualified tags render as
``<prefix.Local>``, unqualified ones as ``<xml.Local>``; primitive leaves
interpolate ``{props.path}``, repeated elements iterate with ``.map``.

Paths follow the props shape produced by the flattener: along the root's
single-property wrapper chain the wrapper tags are emitted but their children
keep the parent's path, because the flattener lifted those children into the
top-level props.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .prefixes import (
    UNQUALIFIED_PREFIX,
    NamespaceMappings,
    PrefixGenerator,
    TagUsageCollector,
    get_namespace_prefix,
    should_have_prefix,
)
from .reference_resolver import TypeReferenceResolver
from .type_graph import (
    InlineObject,
    Primitive,
    PropertyDescriptor,
    Reference,
    RunContext,
    SchemaRegistry,
    local_name,
    to_camel_case,
)

logger = logging.getLogger(__name__)

INDENT = "    "
LOOP_VARIABLE = "item"


def indent(block: str, levels: int = 1) -> str:
    pad = INDENT * levels
    return "\n".join(f"{pad}{line}" if line else line for line in block.split("\n"))


@dataclass
class _Walk:
    """State of one generate_body call."""
    mappings: NamespaceMappings
    collector: Optional[TagUsageCollector]
    # ids of the objects currently open on the path from the root
    open_types: set[int] = field(default_factory=set)


class MarkupGenerator:
    """Generates the JSX body for a root element."""

    def __init__(self, resolver: TypeReferenceResolver, prefixes: PrefixGenerator):
        self.resolver = resolver
        self.prefixes = prefixes

    def generate_body(self, prefix: str, mappings: NamespaceMappings, root_type: str,
                      root_type_object: InlineObject, collector: TagUsageCollector | None = None,
                      props_prefix: str | None = None) -> str:
        """Generate the markup for ``root_type``.

        Args:
            prefix: Prefix of the root element's namespace
            mappings: Namespace mappings of the operation
            root_type: Qualified name of the root element
            root_type_object: Resolved object of the root element
            collector: Optional recorder of every emitted tag
            props_prefix: Field under ``props`` holding this root's data
                (used for headers)

        Returns:
            Multi-line JSX string
        """
        walk = _Walk(mappings, collector, {id(root_type_object)})
        root_tag = local_name(root_type)
        self._record(walk, root_tag, prefix)

        base_path = f"props.{props_prefix}" if props_prefix else "props"
        body = self._render_wrapper_chain(root_type_object, base_path, walk)
        if not body:
            return f"<{prefix}.{root_tag}></{prefix}.{root_tag}>"
        return f"<{prefix}.{root_tag}>\n{indent(body)}\n</{prefix}.{root_tag}>"

    # Root wrapper chain

    def _render_wrapper_chain(self, obj: InlineObject, path: str, walk: _Walk) -> str:
        target = self.resolver.expansion_target(obj)
        if target is None or id(target[2]) in walk.open_types:
            return self._render_properties(obj, path, walk)

        key, prop, payload = target
        tag = self._tag(key, prop, walk)
        walk.open_types.add(id(payload))
        try:
            inner = self._render_wrapper_chain(payload, path, walk)
        finally:
            walk.open_types.discard(id(payload))
        return self._wrap(tag, inner)

    # Properties

    def _render_properties(self, obj: InlineObject, path: str, walk: _Walk) -> str:
        rendered = [
            self._render_property(key, prop, path, walk)
            for key, prop in obj.properties.items()
        ]
        return "\n".join(block for block in rendered if block)

    def _render_property(self, key: str, prop: PropertyDescriptor, path: str, walk: _Walk) -> str:
        tag = self._tag(key, prop, walk)
        field_path = f"{path}.{to_camel_case(key)}"
        value_path = LOOP_VARIABLE if prop.is_array else field_path

        content = self._render_content(key, prop, tag, value_path, walk)
        if not prop.is_array:
            return content
        return f"{{{field_path}.map(({LOOP_VARIABLE}, i) => (\n{indent(content)}\n))}}"

    def _render_content(self, key: str, prop: PropertyDescriptor, tag: str, path: str,
                        walk: _Walk) -> str:
        node = prop.type
        if isinstance(node, Primitive):
            return self._leaf(tag, path)

        if isinstance(node, InlineObject):
            if not node.properties:
                return self._leaf(tag, path)
            return self._render_object(tag, node, path, walk)

        if isinstance(node, Reference):
            resolution = self.resolver.resolve(node.name)
            if resolution is None:
                logger.warning(f"Unresolved reference {node.name} for element {key}, rendering as text")
                return self._leaf(tag, path)
            if not resolution.is_object or not resolution.node.properties:
                return self._leaf(tag, path)
            if resolution.circular:
                if id(resolution.node) in walk.open_types:
                    return self._wrap(tag, "")
                # Cycle broken here: the payload renders without its enclosing tag
                return self._render_nested(resolution.node, path, walk)
            return self._render_object(tag, resolution.node, path, walk)

        return self._leaf(tag, path)

    def _render_object(self, tag: str, obj: InlineObject, path: str, walk: _Walk) -> str:
        if id(obj) in walk.open_types:
            return self._wrap(tag, "")
        return self._wrap(tag, self._render_nested(obj, path, walk))

    def _render_nested(self, obj: InlineObject, path: str, walk: _Walk) -> str:
        walk.open_types.add(id(obj))
        try:
            return self._render_properties(obj, path, walk)
        finally:
            walk.open_types.discard(id(obj))

    # Tags

    def _tag(self, key: str, prop: PropertyDescriptor, walk: _Walk) -> str:
        tag_name = local_name(key)
        if should_have_prefix(prop):
            prefix = get_namespace_prefix(walk.mappings, key, None, prop, self.prefixes)
            self._record(walk, tag_name, prefix)
            return f"{prefix}.{tag_name}"
        return f"{UNQUALIFIED_PREFIX}.{tag_name}"

    def _record(self, walk: _Walk, tag: str, prefix: str):
        if walk.collector is None:
            return
        uri = walk.mappings.prefixes_mapping.get(prefix) or self.prefixes.uri_for(prefix)
        walk.collector.record(tag, prefix, uri)

    @staticmethod
    def _leaf(tag: str, path: str) -> str:
        return f"<{tag}>{{{path}}}</{tag}>"

    @staticmethod
    def _wrap(tag: str, inner: str) -> str:
        if not inner:
            return f"<{tag}></{tag}>"
        return f"<{tag}>\n{indent(inner)}\n</{tag}>"


def generate_body(prefix: str, mappings: NamespaceMappings, root_type: str, root_type_object: InlineObject,
                  registry: SchemaRegistry, collector: TagUsageCollector | None = None,
                  context: RunContext | None = None) -> str:
    """Generate the markup of one root element with a fresh resolver."""
    context = context or RunContext()
    generator = MarkupGenerator(TypeReferenceResolver(registry, context), PrefixGenerator(context))
    return generator.generate_body(prefix, mappings, root_type, root_type_object, collector)
