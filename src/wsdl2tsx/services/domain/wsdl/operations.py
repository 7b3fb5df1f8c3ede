#!/usr/bin/env python3
"""WSDL operation lookups: messages, request/response parts, SOAP headers."""

import logging
from dataclasses import dataclass
from typing import Optional

from ....core.config import GeneratorConfig
from ....models.models import HeaderInfo
from ..schema.exceptions import ReferenceResolutionError, SchemaStructureError
from ..schema.node_accessors import (
    get_attribute,
    get_binding_nodes,
    get_header_nodes,
    get_input_node,
    get_message_nodes,
    get_operation_nodes,
    get_output_node,
    get_part_nodes,
    get_port_type_node,
)
from ..schema.reference_resolver import TypeReferenceResolver
from ..schema.type_graph import (
    XML_SCHEMA_URI,
    InlineObject,
    Reference,
    SchemaRegistry,
    local_name,
    qualified_key,
)

logger = logging.getLogger(__name__)


@dataclass
class WsdlDocument:
    """Parsed WSDL with its type registry."""
    definitions: dict
    namespaces: dict[str, str]
    registry: SchemaRegistry
    location: Optional[str] = None

    @property
    def target_namespace(self) -> Optional[str]:
        return get_attribute(self.definitions, "targetNamespace")


@dataclass
class MessagePart:
    name: str
    kind: str        # 'element' or 'type'
    qname: str       # As written, "prefix:Name"
    key: str         # "namespaceURI:Name"


@dataclass
class ResolvedType:
    """A message part resolved to the object the generator works on."""
    key: str                # Qualified name of the root element/type
    obj: InlineObject


def list_operations(document: WsdlDocument) -> list[dict]:
    port_type = get_port_type_node(document.definitions)
    if port_type is None:
        raise SchemaStructureError("WSDL has no portType")
    return get_operation_nodes(port_type)


def operation_name(operation: dict) -> str:
    return get_attribute(operation, "name") or ""


def qualify(document: WsdlDocument, qname: str) -> str:
    """Turn ``prefix:Name`` into ``namespaceURI:Name`` using the WSDL namespaces."""
    if ":" in qname:
        prefix, name = qname.split(":", 1)
        uri = document.namespaces.get(prefix) or document.registry.namespaces.get(prefix)
        if uri is None:
            logger.warning(f"Unknown prefix {prefix!r} in {qname!r}, using the WSDL target namespace")
            uri = document.target_namespace
        return qualified_key(uri, name)
    return qualified_key(document.namespaces.get("") or document.target_namespace, qname)


def find_message(document: WsdlDocument, message_ref: str) -> Optional[dict]:
    messages = get_message_nodes(document.definitions)
    wanted = local_name(message_ref)
    for message in messages:
        if get_attribute(message, "name") == wanted:
            return message
    for message in messages:
        name = get_attribute(message, "name")
        if name and message_ref.endswith(name):
            return message
    return None


def message_part(document: WsdlDocument, message_ref: str) -> Optional[MessagePart]:
    """First part of a message that declares an element or a type."""
    message = find_message(document, message_ref)
    if message is None:
        return None
    for part in get_part_nodes(message):
        for kind in ("element", "type"):
            qname = get_attribute(part, kind)
            if qname:
                return MessagePart(get_attribute(part, "name") or "", kind, qname, qualify(document, qname))
    return None


def resolve_part(document: WsdlDocument, resolver: TypeReferenceResolver,
                 part: MessagePart) -> ResolvedType:
    """Resolve a message part to its object.

    Raises:
        ReferenceResolutionError: If the referenced element or type is unknown
        SchemaStructureError: If it resolves to a simple type or lacks a namespace
    """
    if part.key.startswith(f"{XML_SCHEMA_URI}:"):
        raise SchemaStructureError(f"part {part.name} is the simple type {part.qname}, nothing to generate")

    found = resolver.lookup(part.key, prefer_types=part.kind == "type")
    if found is None:
        raise ReferenceResolutionError(
            part.qname, document.registry.available_keys(), context=f"message part {part.name}"
        )
    _, key, node = found

    wrapper_namespace = None
    if isinstance(node, Reference):
        wrapper_namespace = node.namespace
        resolution = resolver.resolve(key)
        if resolution is None or not resolution.is_object:
            raise ReferenceResolutionError(
                node.name, document.registry.available_keys(), context=f"type of element {part.qname}"
            )
        node = resolution.node

    if not isinstance(node, InlineObject):
        raise SchemaStructureError(f"part {part.name} does not resolve to a complex type")

    namespace = wrapper_namespace or node.namespace or namespace_from_key(key)
    if not namespace:
        raise SchemaStructureError(f"type {key} has no $namespace")

    if namespace != node.namespace:
        # The root element lives in the element's namespace, not its type's
        node = InlineObject(
            properties=node.properties,
            namespace=namespace,
            qualified=node.qualified,
            base=node.base,
            attributes=node.attributes,
        )
    return ResolvedType(key=key, obj=node)


def namespace_from_key(key: str) -> Optional[str]:
    return key.rsplit(":", 1)[0] if ":" in key else None


def resolve_request(document: WsdlDocument, resolver: TypeReferenceResolver,
                    operation: dict) -> ResolvedType:
    """Resolve the input message of an operation (fatal on failure)."""
    input_node = get_input_node(operation)
    message_ref = get_attribute(input_node, "message") if input_node is not None else None
    if not message_ref:
        raise SchemaStructureError(f"operation {operation_name(operation)} has no input message")
    part = message_part(document, message_ref)
    if part is None:
        raise ReferenceResolutionError(
            message_ref,
            [get_attribute(message, "name") or "" for message in get_message_nodes(document.definitions)],
            context="input message with an element or type part",
        )
    return resolve_part(document, resolver, part)


def resolve_response(document: WsdlDocument, resolver: TypeReferenceResolver,
                     operation: dict) -> Optional[ResolvedType]:
    """Resolve the output message of an operation, or None with a warning."""
    output_node = get_output_node(operation)
    message_ref = get_attribute(output_node, "message") if output_node is not None else None
    if not message_ref:
        return None
    part = message_part(document, message_ref)
    if part is None:
        logger.warning(f"Output message {message_ref} of {operation_name(operation)} has no usable part")
        return None
    try:
        return resolve_part(document, resolver, part)
    except (ReferenceResolutionError, SchemaStructureError) as e:
        logger.warning(f"Response of {operation_name(operation)} skipped: {e}")
        return None


def find_binding_operation(document: WsdlDocument, operation: dict) -> Optional[dict]:
    port_type = get_port_type_node(document.definitions)
    port_type_name = get_attribute(port_type, "name") if port_type is not None else None
    name = operation_name(operation)
    for binding in get_binding_nodes(document.definitions):
        binding_type = get_attribute(binding, "type") or ""
        if port_type_name and local_name(binding_type) != port_type_name:
            continue
        for binding_operation in get_operation_nodes(binding):
            if get_attribute(binding_operation, "name") == name:
                return binding_operation
    return None


def resolve_headers(document: WsdlDocument, resolver: TypeReferenceResolver,
                    operation: dict) -> list[HeaderInfo]:
    """SOAP headers declared on the binding input of an operation.

    Headers whose message, part or type cannot be located are dropped.
    """
    binding_operation = find_binding_operation(document, operation)
    if binding_operation is None:
        return []
    binding_input = get_input_node(binding_operation)
    if binding_input is None:
        return []

    headers: list[HeaderInfo] = []
    for header in get_header_nodes(binding_input):
        message_ref = get_attribute(header, "message")
        part_name = get_attribute(header, "part")
        if not message_ref or not part_name:
            logger.warning(f"Header of {operation_name(operation)} lacks message or part, dropped")
            continue
        message = find_message(document, message_ref)
        part_node = next(
            (part for part in get_part_nodes(message) if get_attribute(part, "name") == part_name),
            None,
        ) if message is not None else None
        if part_node is None:
            logger.warning(f"Header part {part_name} of message {message_ref} not found, dropped")
            continue

        qname = get_attribute(part_node, "element") or get_attribute(part_node, "type")
        if not qname:
            logger.warning(f"Header part {part_name} declares no element or type, dropped")
            continue
        key = qualify(document, qname)
        found = resolver.lookup(key, prefer_types=get_attribute(part_node, "element") is None)
        if found is None:
            logger.warning(f"Header type {qname} not found, header {part_name} dropped")
            continue
        headers.append(HeaderInfo(part_name=part_name, element_name=qname, header_type=found[1]))
    return headers


def detect_soap_namespace(document: WsdlDocument, config: GeneratorConfig) -> str:
    """SOAP envelope namespace matching the WSDL's SOAP binding namespace."""
    soap_uris = [uri for uri in document.namespaces.values() if "soap" in uri.lower()]
    for uri in soap_uris:
        if config.soap_envelope_uri(uri) != config.soap_envelope_uri(None):
            return config.soap_envelope_uri(uri)
    return config.soap_envelope_uri(soap_uris[0] if soap_uris else None)
