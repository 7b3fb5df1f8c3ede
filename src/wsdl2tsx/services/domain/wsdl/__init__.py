"""
WSDL Domain

Handles WSDL operations end to end:
- Operation, message and SOAP header lookups
- Per-operation generation pipeline
- TSX component rendering
"""

from .orchestrator import OperationOrchestrator, generate_from_wsdl
from .renderer import ComponentRenderer

__all__ = ["OperationOrchestrator", "generate_from_wsdl", "ComponentRenderer"]
