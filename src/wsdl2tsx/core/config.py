#!/usr/bin/env python3
"""
Configuration settings for the WSDL to TSX generator.

Every value can be overridden via WSDL2TSX_* environment variables so the
same binary behaves predictably in local runs and in CI pipelines.
"""

import logging

from .env_utils import getenv_bool, getenv_clean, getenv_int, getenv_list

logger = logging.getLogger(__name__)

SOAP_11_ENVELOPE_URI = "http://schemas.xmlsoap.org/soap/envelope/"
SOAP_12_ENVELOPE_URI = "http://www.w3.org/2003/05/soap-envelope"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class GeneratorConfig:
    """Generator configuration.

    Values are read when an instance is created, so tests (and long-lived
    processes) can build a fresh instance after changing the environment.
    """

    def __init__(self):
        # Seconds to wait for a remote WSDL/XSD before giving up
        self.FETCH_TIMEOUT = getenv_int("WSDL2TSX_FETCH_TIMEOUT", 30, minimum=1)

        # Media types sent in the Accept header of remote fetches
        self.ACCEPT_TYPES = getenv_list(
            "WSDL2TSX_ACCEPT_TYPES", ["application/xml", "text/xml", "*/*"]
        )

        # Seeded hash attempts before a prefix falls back to a numeric suffix
        self.MAX_PREFIX_ATTEMPTS = getenv_int("WSDL2TSX_MAX_PREFIX_ATTEMPTS", 10, minimum=1)

        # Characters of the namespace stem kept in a generated prefix
        self.PREFIX_STEM_LENGTH = getenv_int("WSDL2TSX_PREFIX_STEM_LENGTH", 6, minimum=1)

        # Module the generated components import their JSX helpers from
        self.RUNTIME_MODULE = getenv_clean("WSDL2TSX_RUNTIME_MODULE", "@wsdl2tsx/runtime")

        # Write <Operation>.mappings.yaml next to each component
        self.EMIT_MAPPINGS = getenv_bool("WSDL2TSX_EMIT_MAPPINGS", False)

        level = (getenv_clean("WSDL2TSX_LOG_LEVEL", "INFO") or "INFO").upper()
        if level not in VALID_LOG_LEVELS:
            logger.warning(f"Unknown log level {level!r}, using INFO")
            level = "INFO"
        self.LOG_LEVEL = level

    @property
    def accept_header(self) -> str:
        """Accept header value for remote schema fetches."""
        return ", ".join(self.ACCEPT_TYPES)

    @classmethod
    def soap_envelope_uri(cls, binding_namespace: str | None) -> str:
        """Get the SOAP envelope namespace for a WSDL SOAP binding namespace.

        Args:
            binding_namespace: URI bound to the soap/soap12 prefix in the WSDL

        Returns:
            SOAP 1.2 envelope URI for soap12 bindings, SOAP 1.1 otherwise
        """
        if binding_namespace and binding_namespace.rstrip("/").split("/")[-1] == "soap12":
            return SOAP_12_ENVELOPE_URI
        return SOAP_11_ENVELOPE_URI


# Singleton instance
generator_config = GeneratorConfig()
