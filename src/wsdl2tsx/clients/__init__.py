"""
Client Layer

This package contains low-level client wrappers for external resources.
Clients handle fetching documents but contain no schema logic.

Modules:
- schema_client: WSDL/XSD document loading from files and HTTP(S)
"""

from .schema_client import SchemaClient, SchemaLoadError, is_remote, resolve_location

__all__ = [
    'SchemaClient',
    'SchemaLoadError',
    'is_remote',
    'resolve_location',
]
