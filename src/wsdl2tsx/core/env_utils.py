#!/usr/bin/env python3
"""
Helpers for reading generator settings from environment variables.

Values are cleaned of stray whitespace and line endings so that settings
exported from shell profiles or CI variable files behave the same everywhere.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)


def getenv_clean(key: str, default: str = None, strip: bool = True) -> Optional[str]:
    """Get environment variable with whitespace and line endings removed.

    Args:
        key: Environment variable name
        default: Default value if variable is not set
        strip: If True, strip whitespace and line endings (default: True)

    Returns:
        Cleaned environment variable value, or default if not set

    Example:
        >>> # WSDL2TSX_LOG_LEVEL="DEBUG\\r\\n"
        >>> getenv_clean("WSDL2TSX_LOG_LEVEL", "INFO")
        'DEBUG'
    """
    raw_value = os.getenv(key, default)

    if raw_value is None:
        return None

    if not strip:
        return raw_value

    cleaned = raw_value.strip()

    if raw_value != cleaned:
        logger.warning(
            f"Environment variable {key} had surrounding whitespace: "
            f"raw={repr(raw_value)}, cleaned={repr(cleaned)}"
        )

    return cleaned


def getenv_bool(key: str, default: bool = False) -> bool:
    """Get environment variable as boolean.

    "true", "1", "yes" and "on" map to True; "false", "0", "no", "off" and the
    empty string map to False. Anything else falls back to the default.

    Args:
        key: Environment variable name
        default: Default boolean value if variable is not set

    Returns:
        Boolean value
    """
    raw_value = getenv_clean(key, None)

    if raw_value is None:
        return default

    lowered = raw_value.lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    elif lowered in ("false", "0", "no", "off", ""):
        return False
    else:
        logger.warning(
            f"Environment variable {key} has unexpected boolean value: {repr(raw_value)}. "
            f"Using default: {default}"
        )
        return default


def getenv_int(key: str, default: int, minimum: int | None = None) -> int:
    """Get environment variable as integer.

    Args:
        key: Environment variable name
        default: Default integer value if variable is not set or invalid
        minimum: Smallest accepted value; lower values fall back to the default

    Returns:
        Integer value
    """
    raw_value = getenv_clean(key, None)

    if raw_value is None or raw_value == "":
        return default

    try:
        value = int(raw_value)
    except ValueError:
        logger.warning(
            f"Environment variable {key} is not a valid integer: {repr(raw_value)}. "
            f"Using default: {default}"
        )
        return default

    if minimum is not None and value < minimum:
        logger.warning(
            f"Environment variable {key}={value} is below the minimum of {minimum}. "
            f"Using default: {default}"
        )
        return default

    return value


def getenv_list(key: str, default: list[str] = None, separator: str = ",") -> list[str]:
    """Get environment variable as list of cleaned strings.

    Args:
        key: Environment variable name
        default: Default list value if variable is not set
        separator: Separator character (default: ",")

    Returns:
        List of cleaned strings
    """
    if default is None:
        default = []

    raw_value = getenv_clean(key, None)

    if raw_value is None or raw_value == "":
        return default

    items = [item.strip() for item in raw_value.split(separator) if item.strip()]
    return items if items else default
