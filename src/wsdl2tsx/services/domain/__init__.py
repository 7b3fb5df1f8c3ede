"""
Domain Layer

This package contains the code generator's logic organized by domain area.
Domain services implement the core algorithms and should not fetch documents
directly (use the clients layer for that).

Domains:
- schema: XSD parsing, Type Graph, reference resolution, namespaces, flattening, markup
- wsdl: WSDL operations, per-operation orchestration and component rendering
"""
