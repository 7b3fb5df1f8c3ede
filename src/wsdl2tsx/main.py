#!/usr/bin/env python3
"""wsdl2tsx command line entry point.

Usage:
    wsdl2tsx <wsdl> <out_dir> [--operation NAME] [--emit-mappings] [--log-level LEVEL]

Generates one TSX component per portType operation of the WSDL (or only the
named one) into ``out_dir``. Exits 0 on success and 1 on any fatal error.
"""

import argparse
import logging
import sys

from .core.config import VALID_LOG_LEVELS, generator_config
from .core.logging import setup_logging
from .clients.schema_client import SchemaLoadError
from .services.domain.schema.exceptions import CodegenError
from .services.domain.wsdl.orchestrator import generate_from_wsdl

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="wsdl2tsx", description="Generate TSX SOAP request components from a WSDL")
    ap.add_argument("wsdl", help="WSDL file path or http(s) URL")
    ap.add_argument("out_dir", help="Directory receiving the generated components")
    ap.add_argument("-o", "--operation", help="Only generate this operation (case-insensitive)")
    ap.add_argument(
        "--emit-mappings",
        action="store_true",
        default=None,
        help="Also write <Operation>.mappings.yaml with the namespace mappings",
    )
    ap.add_argument(
        "--log-level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=generator_config.LOG_LEVEL,
        help="Logging level (default from WSDL2TSX_LOG_LEVEL, else INFO)",
    )
    return ap


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        written = generate_from_wsdl(
            args.wsdl,
            args.out_dir,
            operation_name=args.operation,
            emit_mappings=args.emit_mappings,
        )
    except (CodegenError, SchemaLoadError) as e:
        logger.error(f"Generation failed: {e}", extra={"location": args.wsdl})
        return 1

    logger.info(f"Generated {len(written)} file(s) in {args.out_dir}")
    return 0


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
