#!/usr/bin/env python3
"""
Schema Document Client

A low-level client for loading WSDL and XSD documents from the local
filesystem or over HTTP(S). It returns raw bytes and knows nothing about
schema semantics; parsing lives in services/domain/schema.
"""

import logging
from pathlib import Path
from urllib.parse import urljoin, urlparse

import requests

from ..core.config import GeneratorConfig, generator_config

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")


class SchemaLoadError(Exception):
    """
    Exception raised when a schema document cannot be loaded.

    Used for:
    - Missing or unreadable local files
    - HTTP error statuses
    - Network failures and timeouts
    """

    def __init__(self, location: str, message: str):
        self.location = location
        super().__init__(f"{message}: {location}")


def is_remote(location: str) -> bool:
    """Check whether a location is an http(s) URL."""
    return urlparse(location).scheme.lower() in REMOTE_SCHEMES


def resolve_location(base: str | None, relative: str) -> str:
    """Resolve an import/include location against the importing document.

    Args:
        base: Location of the importing document (path or URL), or None
        relative: schemaLocation attribute value

    Returns:
        Absolute URL or filesystem path of the imported document
    """
    if is_remote(relative):
        return relative
    if base is None:
        return str(Path(relative))
    if is_remote(base):
        return urljoin(base, relative)
    relative_path = Path(relative)
    if relative_path.is_absolute():
        return str(relative_path)
    return str((Path(base).parent / relative_path).resolve())


class SchemaClient:
    """Loads schema documents by location."""

    def __init__(self, config: GeneratorConfig = None, session: requests.Session | None = None):
        self.config = config or generator_config
        self.session = session or requests.Session()

    def load(self, location: str) -> bytes:
        """Load a document from a path or http(s) URL.

        Args:
            location: Filesystem path or URL

        Returns:
            Raw document bytes

        Raises:
            SchemaLoadError: If the document cannot be read or fetched
        """
        if is_remote(location):
            return self._fetch(location)
        return self._read(location)

    def resolve_location(self, base: str | None, relative: str) -> str:
        return resolve_location(base, relative)

    def _read(self, location: str) -> bytes:
        path = Path(location)
        logger.debug(f"Reading schema file {path}")
        try:
            return path.read_bytes()
        except OSError as e:
            raise SchemaLoadError(location, f"Error reading file ({e.strerror or e})") from e

    def _fetch(self, location: str) -> bytes:
        logger.debug(f"Fetching schema {location} (timeout={self.config.FETCH_TIMEOUT}s)")
        try:
            response = self.session.get(
                location,
                timeout=self.config.FETCH_TIMEOUT,
                headers={"Accept": self.config.accept_header},
            )
        except requests.Timeout as e:
            raise SchemaLoadError(
                location, f"No response within {self.config.FETCH_TIMEOUT}s"
            ) from e
        except requests.RequestException as e:
            raise SchemaLoadError(location, f"Request failed ({e})") from e

        if response.status_code >= 400:
            raise SchemaLoadError(
                location, f"HTTP error {response.status_code} {response.reason or ''}".rstrip()
            )
        return response.content
