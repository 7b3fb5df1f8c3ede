#!/usr/bin/env python3
"""Tests for generator configuration."""

import os
from unittest.mock import patch

from wsdl2tsx.core.config import (
    SOAP_11_ENVELOPE_URI,
    SOAP_12_ENVELOPE_URI,
    GeneratorConfig,
)


class TestGeneratorConfig:
    """Test suite for generator configuration."""

    @patch.dict(os.environ, {}, clear=True)
    def test_default_values(self):
        """Test that default values are set correctly."""
        config = GeneratorConfig()

        assert config.FETCH_TIMEOUT == 30
        assert config.MAX_PREFIX_ATTEMPTS == 10
        assert config.PREFIX_STEM_LENGTH == 6
        assert config.RUNTIME_MODULE == "@wsdl2tsx/runtime"
        assert config.EMIT_MAPPINGS is False
        assert config.LOG_LEVEL == "INFO"
        assert config.ACCEPT_TYPES == ["application/xml", "text/xml", "*/*"]

    @patch.dict(os.environ, {
        'WSDL2TSX_FETCH_TIMEOUT': '5',
        'WSDL2TSX_MAX_PREFIX_ATTEMPTS': '3',
        'WSDL2TSX_PREFIX_STEM_LENGTH': '4',
        'WSDL2TSX_RUNTIME_MODULE': '@acme/soap-jsx',
        'WSDL2TSX_EMIT_MAPPINGS': 'true',
        'WSDL2TSX_LOG_LEVEL': 'debug',
    })
    def test_environment_variable_override(self):
        """Test that environment variables override defaults."""
        # Need to create a new instance to pick up env vars
        config = GeneratorConfig()

        assert config.FETCH_TIMEOUT == 5
        assert config.MAX_PREFIX_ATTEMPTS == 3
        assert config.PREFIX_STEM_LENGTH == 4
        assert config.RUNTIME_MODULE == "@acme/soap-jsx"
        assert config.EMIT_MAPPINGS is True
        assert config.LOG_LEVEL == "DEBUG"

    @patch.dict(os.environ, {'WSDL2TSX_FETCH_TIMEOUT': '0', 'WSDL2TSX_MAX_PREFIX_ATTEMPTS': 'many'})
    def test_invalid_values_fall_back_to_defaults(self):
        """Test that out-of-range and non-numeric values use the defaults."""
        config = GeneratorConfig()

        assert config.FETCH_TIMEOUT == 30
        assert config.MAX_PREFIX_ATTEMPTS == 10

    @patch.dict(os.environ, {'WSDL2TSX_LOG_LEVEL': 'LOUD'})
    def test_unknown_log_level_uses_info(self):
        """Test that an unknown log level is replaced by INFO."""
        assert GeneratorConfig().LOG_LEVEL == "INFO"

    @patch.dict(os.environ, {'WSDL2TSX_ACCEPT_TYPES': 'text/xml, application/wsdl+xml'})
    def test_accept_header(self):
        """Test that the Accept header joins the configured media types."""
        assert GeneratorConfig().accept_header == "text/xml, application/wsdl+xml"

    def test_soap_envelope_uri_for_soap11_binding(self):
        """Test that SOAP 1.1 bindings map to the SOAP 1.1 envelope."""
        uri = GeneratorConfig.soap_envelope_uri("http://schemas.xmlsoap.org/wsdl/soap/")
        assert uri == SOAP_11_ENVELOPE_URI

    def test_soap_envelope_uri_for_soap12_binding(self):
        """Test that SOAP 1.2 bindings map to the SOAP 1.2 envelope."""
        uri = GeneratorConfig.soap_envelope_uri("http://schemas.xmlsoap.org/wsdl/soap12/")
        assert uri == SOAP_12_ENVELOPE_URI

    def test_soap_envelope_uri_without_binding(self):
        """Test that a missing binding namespace defaults to SOAP 1.1."""
        assert GeneratorConfig.soap_envelope_uri(None) == SOAP_11_ENVELOPE_URI
