#!/usr/bin/env python3
"""Namespace prefix derivation and the mapping structures built from it.

Prefixes are short, deterministic and readable: up to six characters of the
namespace URI's last path segment followed by a three character base-36 hash.
A prefix is assigned once per URI per run (through the RunContext), which keeps
the prefix <-> URI relation a bijection across every mapping of the run.
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ....core.config import GeneratorConfig, generator_config
from .type_graph import InlineObject, PropertyDescriptor, RunContext

logger = logging.getLogger(__name__)

HASH_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
HASH_LENGTH = 3
UNQUALIFIED_PREFIX = "xml"

# Identifiers the generated module already uses, plus JS reserved words
RESERVED_PREFIXES = frozenset({
    "xml", "soap", "ns", "props", "item",
    "case", "else", "enum", "null", "this", "true", "void", "with", "await",
    "break", "catch", "class", "const", "false", "super", "throw", "while",
    "yield", "delete", "export", "import", "public", "return", "static",
    "switch", "typeof", "default", "extends", "finally", "package", "private",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _base36(value: int, width: int) -> str:
    digits = []
    for _ in range(width):
        value, remainder = divmod(value, 36)
        digits.append(HASH_ALPHABET[remainder])
    return "".join(reversed(digits))


def namespace_hash(uri: str, seed: int = 0) -> str:
    """Three character base-36 hash of ``seed:uri``."""
    digest = hashlib.sha1(f"{seed}:{uri}".encode("utf-8")).digest()
    return _base36(int.from_bytes(digest[:8], "big") % 36 ** HASH_LENGTH, HASH_LENGTH)


def namespace_stem(uri: str, length: int = 6) -> str:
    """Lowercase alphanumeric stem from the last non-empty URI segment."""
    segments = [segment for segment in re.split(r"[/:#]", uri) if segment]
    last = segments[-1] if segments else ""
    stem = _NON_ALNUM.sub("", last.lower())[:length]
    if not stem or stem[0].isdigit():
        stem = f"n{stem}"[:length]
    return stem


class PrefixGenerator:
    """Assigns collision-free prefixes to namespace URIs for one run."""

    def __init__(self, context: RunContext, config: GeneratorConfig = None):
        self.context = context
        self.config = config or generator_config

    def _available(self, prefix: str, uri: str) -> bool:
        if prefix in RESERVED_PREFIXES:
            return False
        owner = self.context.uri_by_prefix.get(prefix)
        return owner is None or owner == uri

    def prefix_for(self, uri: str) -> str:
        """Get (or assign) the prefix of a namespace URI."""
        cached = self.context.prefix_by_uri.get(uri)
        if cached is not None:
            return cached

        stem = namespace_stem(uri, self.config.PREFIX_STEM_LENGTH)
        prefix: Optional[str] = None
        for seed in range(self.config.MAX_PREFIX_ATTEMPTS):
            candidate = f"{stem}{namespace_hash(uri, seed)}"
            if self._available(candidate, uri):
                prefix = candidate
                break
            logger.debug(f"Prefix {candidate} taken, retrying {uri} with seed {seed + 1}")

        if prefix is None:
            base = f"{stem}{namespace_hash(uri)}"
            suffix = 2
            while not self._available(f"{base}{suffix}", uri):
                suffix += 1
            prefix = f"{base}{suffix}"
            logger.warning(
                f"Prefix hash attempts exhausted for {uri}, using numbered prefix {prefix}"
            )

        self.context.prefix_by_uri[uri] = prefix
        self.context.uri_by_prefix[prefix] = uri
        return prefix

    def uri_for(self, prefix: str) -> Optional[str]:
        return self.context.uri_by_prefix.get(prefix)


@dataclass
class TypeNamespace:
    uri: str
    prefix: str


@dataclass
class NamespaceMappings:
    """Tags per prefix, prefix -> URI, and per-key namespace information."""
    tags_mapping: dict[str, list[str]] = field(default_factory=dict)
    prefixes_mapping: dict[str, str] = field(default_factory=dict)
    types_mapping: dict[str, TypeNamespace] = field(default_factory=dict)
    base_prefix: str = ""

    def add_tag(self, prefix: str, tag: str):
        tags = self.tags_mapping.setdefault(prefix, [])
        if tag not in tags:
            tags.append(tag)

    def register_prefix(self, prefix: str, uri: str):
        existing = self.prefixes_mapping.get(prefix)
        if existing is not None and existing != uri:
            raise ValueError(f"Prefix {prefix} already bound to {existing}, cannot bind {uri}")
        self.prefixes_mapping[prefix] = uri

    def merge(self, other: "NamespaceMappings"):
        """Add prefixes, tags and type namespaces from ``other`` without overwriting."""
        for prefix, uri in other.prefixes_mapping.items():
            self.prefixes_mapping.setdefault(prefix, uri)
        for prefix, tags in other.tags_mapping.items():
            for tag in tags:
                self.add_tag(prefix, tag)
        for key, namespace in other.types_mapping.items():
            self.types_mapping.setdefault(key, namespace)

    def to_dict(self) -> dict:
        return {
            "base_prefix": self.base_prefix,
            "prefixes": dict(self.prefixes_mapping),
            "tags": {prefix: list(tags) for prefix, tags in self.tags_mapping.items()},
            "types": {
                key: {"uri": namespace.uri, "prefix": namespace.prefix}
                for key, namespace in self.types_mapping.items()
            },
        }


@dataclass
class TagUsageCollector:
    """Records which tag the markup generator emitted under which prefix."""
    usages: list[tuple[str, str]] = field(default_factory=list)
    prefix_to_namespace: dict[str, str] = field(default_factory=dict)

    def record(self, tag: str, prefix: str, uri: Optional[str]):
        if (prefix, tag) not in self.usages:
            self.usages.append((prefix, tag))
        if uri:
            self.prefix_to_namespace.setdefault(prefix, uri)


def should_have_prefix(prop: PropertyDescriptor) -> bool:
    """Whether a property's tag renders namespace-qualified."""
    if prop.qualified is not None:
        return prop.qualified
    if isinstance(prop.type, InlineObject) and prop.type.qualified is not None:
        return prop.type.qualified
    return False


def get_namespace_prefix(mappings: NamespaceMappings, key: str, parent_key: Optional[str],
                         prop: PropertyDescriptor, prefixes: PrefixGenerator) -> str:
    """Prefix for a property tag.

    The element's own namespace wins, then the namespace of its inline type,
    then whatever the mappings recorded for the parent (or the key itself),
    and finally the base prefix.
    """
    if prop.namespace:
        return prefixes.prefix_for(prop.namespace)
    if isinstance(prop.type, InlineObject) and prop.type.namespace:
        return prefixes.prefix_for(prop.type.namespace)
    known = mappings.types_mapping.get(parent_key if parent_key is not None else key)
    if known is not None:
        return known.prefix
    return mappings.base_prefix
