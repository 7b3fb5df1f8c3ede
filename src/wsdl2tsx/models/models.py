#!/usr/bin/env python3

from pydantic import BaseModel

# Pydantic Models


class HeaderInfo(BaseModel):
    """SOAP header declared on a binding operation input."""

    part_name: str  # Local name of the message part
    element_name: str  # Qualified element reference ("prefix:Name")
    header_type: str  # Resolved registry key ("namespaceURI:Name")


class OperationDescriptor(BaseModel):
    """portType operation with its resolved message types."""

    name: str
    request_type: str  # Registry key of the input message part
    response_type: str | None = None  # Registry key of the output message part, when resolvable
    headers: list[HeaderInfo] = []


class InterfaceProperty(BaseModel):
    name: str  # camelCase property name
    type: str  # Host type or interface name
    modifier: str = ""  # '', '?' or '[]'


class InterfaceDescriptor(BaseModel):
    name: str  # PascalCase interface name
    properties: list[InterfaceProperty] = []

    def property_names(self) -> list[str]:
        return [prop.name for prop in self.properties]


class PropsDescriptor(InterfaceDescriptor):
    """Flattened props shape of a generated component."""


class PrimitiveAlias(BaseModel):
    name: str  # PascalCase alias name
    host_type: str  # 'string', 'number', 'boolean' or 'Date'


class HeaderData(BaseModel):
    part_name: str
    element_name: str
    header_type: str
    markup: str  # Header body markup rendered against props.<camelCase(part)>


class TemplateData(BaseModel):
    """Everything the component template needs for one operation."""

    request_type: str  # Local name of the request element
    namespaces: dict[str, list[str]] = {}  # prefix -> tag local names
    simple_types: list[PrimitiveAlias] = []
    props_interface: PropsDescriptor
    interfaces: list[InterfaceDescriptor] = []
    soap_namespace_uri: str
    xmlns_attributes: dict[str, str] = {}  # prefix -> namespace URI
    xml_body: str
    headers: list[HeaderData] = []
    response_type: str | None = None
    response_props_interface: PropsDescriptor | None = None
    response_interfaces: list[InterfaceDescriptor] = []
