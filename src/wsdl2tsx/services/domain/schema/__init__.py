"""
XSD Schema Domain

Turns WSDL/XSD documents into the Type Graph and derives generator output from it:
- Node accessors over the parsed XML tree
- Schema AST building (imports, groups, extensions)
- Type reference resolution
- Namespace prefix derivation and mapping reconciliation
- Props/interface flattening and markup generation
"""

from .ast_builder import SchemaAstBuilder, build_type_graph
from .exceptions import (
    CodegenError,
    EmptySchemaError,
    GenerationError,
    OperationNotFoundError,
    ReferenceResolutionError,
    SchemaStructureError,
)
from .flattener import InterfaceFlattener, flatten
from .markup import MarkupGenerator, generate_body
from .namespaces import NamespaceResolver, extract_namespace_mappings
from .prefixes import NamespaceMappings, PrefixGenerator
from .reference_resolver import TypeReferenceResolver, resolve_reference
from .xml_tree import parse_xml_tree

__all__ = [
    # Type Graph
    "SchemaAstBuilder",
    "build_type_graph",
    "TypeReferenceResolver",
    "resolve_reference",
    # Output derivation
    "NamespaceMappings",
    "NamespaceResolver",
    "PrefixGenerator",
    "extract_namespace_mappings",
    "InterfaceFlattener",
    "flatten",
    "MarkupGenerator",
    "generate_body",
    "parse_xml_tree",
    # Errors
    "CodegenError",
    "EmptySchemaError",
    "GenerationError",
    "OperationNotFoundError",
    "ReferenceResolutionError",
    "SchemaStructureError",
]
