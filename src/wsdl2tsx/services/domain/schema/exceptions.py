#!/usr/bin/env python3
"""Errors raised while turning WSDL/XSD documents into generated code."""


class CodegenError(Exception):
    """Base class for generator failures."""
    pass


class SchemaStructureError(CodegenError):
    """
    Exception raised when a schema construct has a shape the builder cannot use.

    Used for:
    - complexType without sequence/choice/all/group/simpleContent/complexContent
    - Types without a namespace where one is required
    - Documents missing a definitions or schema root
    """
    pass


class EmptySchemaError(SchemaStructureError):
    """Raised when a schema set yields no elements and no complexTypes.

    The message carries a diagnostic of what was found so the WSDL author
    can see which imports or declarations went missing.
    """

    def __init__(self, diagnostic: str):
        self.diagnostic = diagnostic
        super().__init__(diagnostic)


class ReferenceResolutionError(CodegenError):
    """Raised when a message part references a type that cannot be found."""

    def __init__(self, reference: str, available: list[str] | None = None, context: str = ""):
        self.reference = reference
        self.available = available or []
        message = f"Type {reference!r} not found"
        if context:
            message = f"{message} ({context})"
        if self.available:
            shown = ", ".join(self.available[:20])
            more = f" (+{len(self.available) - 20} more)" if len(self.available) > 20 else ""
            message = f"{message}. Available types: {shown}{more}"
        super().__init__(message)


class OperationNotFoundError(CodegenError):
    """Raised when the requested operation is not declared in the portType."""

    def __init__(self, operation: str, available: list[str]):
        self.operation = operation
        self.available = available
        super().__init__(
            f"Operation {operation!r} not found. Available operations: {', '.join(available) or '(none)'}"
        )


class GenerationError(CodegenError):
    """Raised when a run finishes without writing any component."""
    pass
