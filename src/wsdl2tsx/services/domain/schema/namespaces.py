#!/usr/bin/env python3
"""Namespace mappings for one root element.

Built in two explicit steps:

1. ``predict`` walks the Type Graph and assigns tags to prefixes from each
   element's declared namespace.
2. ``reconcile`` replaces the predicted tag lists with what the markup
   generator actually emitted (``observe``), since a tag reached through a
   reference chain may render under another namespace than the prediction
   assumed. Prefixes seen only during observation are added as well.
"""

import logging

from .exceptions import SchemaStructureError
from .markup import MarkupGenerator
from .prefixes import NamespaceMappings, PrefixGenerator, TagUsageCollector, TypeNamespace, should_have_prefix
from .reference_resolver import TypeReferenceResolver
from .type_graph import InlineObject, RunContext, SchemaRegistry, local_name

logger = logging.getLogger(__name__)


class NamespaceResolver:
    """Computes NamespaceMappings with the predict/observe/reconcile protocol."""

    def __init__(self, resolver: TypeReferenceResolver, prefixes: PrefixGenerator,
                 markup: MarkupGenerator | None = None):
        self.resolver = resolver
        self.prefixes = prefixes
        self.markup = markup or MarkupGenerator(resolver, prefixes)

    def predict(self, base_type_name: str, base_type_object: InlineObject) -> NamespaceMappings:
        """Phase 1: tentative mappings from declared namespaces.

        Raises:
            SchemaStructureError: If the base object has no namespace
        """
        if not base_type_object.namespace:
            raise SchemaStructureError(f"type {base_type_name} has no $namespace")

        mappings = NamespaceMappings()
        base_prefix = self.prefixes.prefix_for(base_type_object.namespace)
        mappings.base_prefix = base_prefix
        mappings.register_prefix(base_prefix, base_type_object.namespace)
        mappings.add_tag(base_prefix, local_name(base_type_name))

        self._predict_object(base_type_object, base_type_object.namespace, mappings, set())
        return mappings

    def _predict_object(self, obj: InlineObject, fallback_namespace: str,
                        mappings: NamespaceMappings, walked: set[int]):
        if id(obj) in walked:
            return
        walked.add(id(obj))

        for key, prop in obj.properties.items():
            uri = prop.namespace or obj.namespace or fallback_namespace
            prefix = self.prefixes.prefix_for(uri)
            mappings.types_mapping.setdefault(key, TypeNamespace(uri, prefix))
            if should_have_prefix(prop):
                mappings.register_prefix(prefix, uri)
                mappings.add_tag(prefix, local_name(key))
            if isinstance(prop.type, InlineObject):
                self._predict_object(prop.type, uri, mappings, walked)

    def observe(self, mappings: NamespaceMappings, base_type_name: str,
                base_type_object: InlineObject) -> TagUsageCollector:
        """Render the markup once and record every emitted tag."""
        collector = TagUsageCollector()
        self.markup.generate_body(mappings.base_prefix, mappings, base_type_name, base_type_object, collector)
        return collector

    def reconcile(self, tentative: NamespaceMappings, observed: TagUsageCollector) -> NamespaceMappings:
        """Phase 2: rebuild tag lists from observed usage.

        Args:
            tentative: Result of ``predict``
            observed: Tags recorded while rendering the markup

        Returns:
            Final mappings; every prefix with tags has a URI entry
        """
        final = NamespaceMappings(
            prefixes_mapping=dict(tentative.prefixes_mapping),
            types_mapping=dict(tentative.types_mapping),
            base_prefix=tentative.base_prefix,
        )
        for prefix, tag in observed.usages:
            if tag.startswith("_"):
                continue
            final.add_tag(prefix, tag)

        for prefix, uri in observed.prefix_to_namespace.items():
            if prefix not in final.prefixes_mapping:
                logger.debug(f"Adding prefix {prefix} -> {uri} seen while rendering")
                final.prefixes_mapping[prefix] = uri

        for prefix in final.tags_mapping:
            if prefix not in final.prefixes_mapping:
                uri = self.prefixes.uri_for(prefix)
                if uri is None:
                    raise SchemaStructureError(f"prefix {prefix} is used but bound to no namespace")
                final.prefixes_mapping[prefix] = uri
        return final

    def extract_namespace_mappings(self, base_type_name: str,
                                   base_type_object: InlineObject) -> NamespaceMappings:
        tentative = self.predict(base_type_name, base_type_object)
        observed = self.observe(tentative, base_type_name, base_type_object)
        return self.reconcile(tentative, observed)


def extract_namespace_mappings(base_type_name: str, base_type_object: InlineObject,
                               registry: SchemaRegistry, complex_type_pool: dict | None = None,
                               context: RunContext | None = None) -> NamespaceMappings:
    """Predict, observe and reconcile the mappings of one root element."""
    if complex_type_pool is not None and complex_type_pool is not registry.complex_types:
        registry = SchemaRegistry(registry.elements, complex_type_pool, registry.namespaces, registry.schemas)
    context = context or RunContext()
    resolver = TypeReferenceResolver(registry, context)
    return NamespaceResolver(resolver, PrefixGenerator(context)).extract_namespace_mappings(
        base_type_name, base_type_object
    )
