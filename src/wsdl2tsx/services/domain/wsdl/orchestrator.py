#!/usr/bin/env python3
"""Per-operation generation pipeline.

For every portType operation: resolve the request type (fatal for that
operation), the SOAP headers and the response type (both optional), build the
namespace mappings, flatten the props and interfaces, generate the markup and
hand the resulting TemplateData to the renderer.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ....clients.schema_client import SchemaClient
from ....core.config import GeneratorConfig, generator_config
from ....models.models import (
    HeaderData,
    HeaderInfo,
    InterfaceDescriptor,
    InterfaceProperty,
    OperationDescriptor,
    TemplateData,
)
from ..schema.ast_builder import build_type_graph
from ..schema.exceptions import (
    CodegenError,
    GenerationError,
    OperationNotFoundError,
    ReferenceResolutionError,
    SchemaStructureError,
)
from ..schema.flattener import InterfaceFlattener
from ..schema.markup import MarkupGenerator
from ..schema.namespaces import NamespaceResolver
from ..schema.node_accessors import (
    get_all_schema_nodes,
    get_definitions_node,
    get_namespaces_from_node,
    get_types_node,
)
from ..schema.prefixes import NamespaceMappings, PrefixGenerator
from ..schema.reference_resolver import TypeReferenceResolver
from ..schema.type_graph import RunContext, local_name, to_camel_case, to_pascal_case
from ..schema.xml_tree import parse_xml_tree
from .operations import (
    MessagePart,
    WsdlDocument,
    detect_soap_namespace,
    list_operations,
    operation_name,
    resolve_headers,
    resolve_part,
    resolve_request,
    resolve_response,
)
from .renderer import ComponentRenderer

logger = logging.getLogger(__name__)


@dataclass
class OperationResult:
    name: str
    descriptor: OperationDescriptor
    data: TemplateData
    mappings: NamespaceMappings


class OperationOrchestrator:
    """Runs the generator for one WSDL document."""

    def __init__(self, client: SchemaClient | None = None, config: GeneratorConfig = None,
                 renderer: ComponentRenderer | None = None):
        self.config = config or generator_config
        self.client = client or SchemaClient(self.config)
        self.renderer = renderer or ComponentRenderer(self.config)

    # Loading

    def load(self, wsdl_location: str) -> WsdlDocument:
        """Load a WSDL and build the type registry of its schemas."""
        logger.info(f"Loading WSDL {wsdl_location}")
        tree = parse_xml_tree(self.client.load(wsdl_location))
        definitions = get_definitions_node(tree)
        if definitions is None:
            raise SchemaStructureError(f"{wsdl_location} has no definitions element")

        namespaces = get_namespaces_from_node(definitions)
        types_node = get_types_node(definitions)
        schemas = get_all_schema_nodes(types_node) if types_node is not None else []
        registry = build_type_graph(schemas, namespaces, wsdl_location, self.client)
        return WsdlDocument(definitions, namespaces, registry, wsdl_location)

    # Pipeline

    def generate(self, wsdl_location: str, out_dir: Path | str, operation_name_filter: str | None = None,
                 emit_mappings: bool | None = None) -> list[Path]:
        """Generate one component per operation.

        Args:
            wsdl_location: WSDL path or URL
            out_dir: Directory receiving the generated files
            operation_name_filter: Only generate this operation (case-insensitive)
            emit_mappings: Also write <Operation>.mappings.yaml; defaults to config

        Returns:
            Paths of the written files

        Raises:
            OperationNotFoundError: If the filter matches no operation
            GenerationError: If no component was generated
        """
        out_dir = Path(out_dir)
        emit = self.config.EMIT_MAPPINGS if emit_mappings is None else emit_mappings
        document = self.load(wsdl_location)
        operations = list_operations(document)

        if operation_name_filter:
            wanted = operation_name_filter.lower()
            selected = [op for op in operations if operation_name(op).lower() == wanted]
            if not selected:
                raise OperationNotFoundError(operation_name_filter, [operation_name(op) for op in operations])
            operations = selected

        context = RunContext()
        written: list[Path] = []
        for operation in operations:
            name = operation_name(operation)
            try:
                result = self.process_operation(document, operation, context)
            except CodegenError as e:
                if operation_name_filter:
                    raise
                logger.error(f"Operation {name} skipped: {e}", extra={"operation": name})
                continue

            written.append(self.renderer.write(result.data, name, out_dir))
            if emit:
                written.append(self.renderer.write_mappings(result.mappings, name, out_dir))

        if not written:
            raise GenerationError(f"No components were generated from {wsdl_location}")
        return written

    def process_operation(self, document: WsdlDocument, operation: dict,
                          context: RunContext | None = None) -> OperationResult:
        """Resolve, flatten and generate markup for one operation."""
        context = context or RunContext()
        name = operation_name(operation)
        resolver = TypeReferenceResolver(document.registry, context)
        prefixes = PrefixGenerator(context, self.config)
        markup = MarkupGenerator(resolver, prefixes)
        namespaces = NamespaceResolver(resolver, prefixes, markup)
        flattener = InterfaceFlattener(resolver)

        logger.debug(f"Processing operation {name}")
        request = resolve_request(document, resolver, operation)

        headers = resolve_headers(document, resolver, operation)

        response = resolve_response(document, resolver, operation)
        descriptor = OperationDescriptor(
            name=name,
            request_type=request.key,
            response_type=response.key if response is not None else None,
            headers=headers,
        )

        mappings = namespaces.extract_namespace_mappings(request.key, request.obj)

        reachable = resolver.find_referenced_types(request.obj)
        flattened = flattener.flatten(request.key, request.obj, sorted(reachable))
        props = flattened.props
        interfaces = list(flattened.interfaces)

        header_data = self._process_headers(
            document, resolver, namespaces, markup, flattener, descriptor.headers, mappings, props, interfaces
        )

        body = markup.generate_body(mappings.base_prefix, mappings, request.key, request.obj)

        data = TemplateData(
            request_type=local_name(descriptor.request_type),
            namespaces=mappings.tags_mapping,
            simple_types=flattener.primitive_type_aliases(flattener.expand(request.obj)),
            props_interface=props,
            interfaces=interfaces,
            soap_namespace_uri=detect_soap_namespace(document, self.config),
            xmlns_attributes=mappings.prefixes_mapping,
            xml_body=body,
            headers=header_data,
        )

        if response is not None:
            response_result = flattener.flatten(response.key, response.obj)
            known = {interface.name for interface in interfaces}
            data.response_type = local_name(descriptor.response_type)
            data.response_props_interface = response_result.props
            data.response_interfaces = [
                interface for interface in response_result.interfaces if interface.name not in known
            ]

        return OperationResult(name=name, descriptor=descriptor, data=data, mappings=mappings)

    def _process_headers(self, document: WsdlDocument, resolver: TypeReferenceResolver,
                         namespaces: NamespaceResolver, markup: MarkupGenerator,
                         flattener: InterfaceFlattener, headers: list[HeaderInfo],
                         mappings: NamespaceMappings, props, interfaces: list[InterfaceDescriptor]) -> list[HeaderData]:
        header_data: list[HeaderData] = []
        for header in headers:
            part = MessagePart(header.part_name, "element", header.element_name, header.header_type)
            try:
                resolved = resolve_part(document, resolver, part)
                header_mappings = namespaces.extract_namespace_mappings(resolved.key, resolved.obj)
            except (ReferenceResolutionError, SchemaStructureError) as e:
                logger.warning(f"Header {header.part_name} dropped: {e}")
                continue

            props_field = to_camel_case(header.part_name)
            header_markup = markup.generate_body(
                header_mappings.base_prefix, header_mappings, resolved.key, resolved.obj,
                props_prefix=props_field,
            )
            mappings.merge(header_mappings)

            header_result = flattener.flatten(resolved.key, resolved.obj)
            header_interface = InterfaceDescriptor(
                name=to_pascal_case(local_name(header.header_type)),
                properties=header_result.props.properties,
            )
            known = {interface.name for interface in interfaces}
            for interface in [header_interface, *header_result.interfaces]:
                if interface.name not in known:
                    interfaces.append(interface)
                    known.add(interface.name)

            props.properties.append(InterfaceProperty(name=props_field, type=header_interface.name))
            header_data.append(HeaderData(
                part_name=header.part_name,
                element_name=header.element_name,
                header_type=header.header_type,
                markup=header_markup,
            ))
        return header_data


def generate_from_wsdl(wsdl_location: str, out_dir: Path | str, operation_name: str | None = None,
                       client: SchemaClient | None = None, emit_mappings: bool | None = None) -> list[Path]:
    """Generate TSX components for the operations of a WSDL."""
    return OperationOrchestrator(client=client).generate(wsdl_location, out_dir, operation_name, emit_mappings)
