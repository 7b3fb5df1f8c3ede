#!/usr/bin/env python3
"""Renders TemplateData into TSX component files."""

import logging
from pathlib import Path

import yaml
from jinja2 import Environment, FileSystemLoader

from ....core.config import GeneratorConfig, generator_config
from ....models.models import TemplateData
from ..schema.markup import indent
from ..schema.prefixes import NamespaceMappings
from ..schema.type_graph import to_pascal_case

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent.parent.parent / "templates"
COMPONENT_TEMPLATE = "component.tsx.jinja"


def _field(prop) -> str:
    optional = "?" if prop.modifier == "?" else ""
    array = "[]" if prop.modifier == "[]" else ""
    return f"{prop.name}{optional}: {prop.type}{array};"


class ComponentRenderer:
    """Writes one component (and optionally its mappings) per operation."""

    def __init__(self, config: GeneratorConfig = None, templates_dir: Path | None = None):
        self.config = config or generator_config
        self.template_env = Environment(
            loader=FileSystemLoader(str(templates_dir or TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self.template_env.filters["pascal_case"] = to_pascal_case
        self.template_env.filters["field"] = _field
        self.template_env.filters["indent_block"] = indent
        self._template = self.template_env.get_template(COMPONENT_TEMPLATE)

    def render(self, data: TemplateData) -> str:
        return self._template.render(data=data, runtime_module=self.config.RUNTIME_MODULE)

    def write(self, data: TemplateData, operation_name: str, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = out_dir / f"{operation_name}.tsx"
        target.write_text(self.render(data), encoding="utf-8")
        logger.info(f"Generated {target}")
        return target

    def write_mappings(self, mappings: NamespaceMappings, operation_name: str, out_dir: Path) -> Path:
        out_dir.mkdir(parents=True, exist_ok=True)
        target = out_dir / f"{operation_name}.mappings.yaml"
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(mappings.to_dict(), f, sort_keys=False, allow_unicode=True)
        logger.debug(f"Wrote namespace mappings to {target}")
        return target
