#!/usr/bin/env python3
"""
Helpers for reading typed values out of the process environment.

Values copied out of .env files edited on Windows regularly carry a trailing
carriage return; every helper here strips it before converting.
"""

import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off", "")


def getenv_clean(key: str, default: str = None) -> Optional[str]:
    """Read an environment variable with surrounding whitespace removed.

    Args:
        key: Environment variable name
        default: Value returned when the variable is unset

    Returns:
        The stripped value, or default when unset

    Example:
        >>> # export ERROR_REPORT_URL="https://reports.example.org/\\r"
        >>> getenv_clean("ERROR_REPORT_URL")
        'https://reports.example.org/'
    """
    raw_value = os.getenv(key, default)
    if raw_value is None:
        return None

    cleaned = raw_value.strip()
    if cleaned != raw_value:
        logger.warning(f"Environment variable {key} contained stray whitespace: {repr(raw_value)}")
    return cleaned


def getenv_bool(key: str, default: bool = False) -> bool:
    """Read an environment variable as a boolean flag.

    Unrecognised values log a warning and return the default.
    """
    raw_value = getenv_clean(key)
    if raw_value is None:
        return default

    lowered = raw_value.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False

    logger.warning(f"Environment variable {key} is not a boolean: {repr(raw_value)}, using {default}")
    return default


def getenv_int(key: str, default: int) -> int:
    """Read an environment variable as an integer, falling back to default."""
    raw_value = getenv_clean(key)
    if raw_value is None or raw_value == "":
        return default

    try:
        return int(raw_value)
    except ValueError:
        logger.warning(f"Environment variable {key} is not an integer: {repr(raw_value)}, using {default}")
        return default


def getenv_list(key: str, default: list[str] = None, separator: str = ",") -> list[str]:
    """Read a separator-delimited environment variable as a list of strings.

    Example:
        >>> # export CORS_ORIGINS=http://localhost:3000,http://localhost:8080
        >>> getenv_list("CORS_ORIGINS")
        ['http://localhost:3000', 'http://localhost:8080']
    """
    raw_value = getenv_clean(key)
    if not raw_value:
        return list(default or [])

    items = [item.strip() for item in raw_value.split(separator) if item.strip()]
    return items or list(default or [])
