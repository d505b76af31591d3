"""
StubTap Common Utilities

Shared helpers for header lookup, body text and logging.
"""

import logging
from typing import Any, Mapping, Optional


LOGGER_NAME = 'stubtap'


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a StubTap logger.

    All StubTap loggers live under the ``stubtap`` namespace so a single
    ``logging.getLogger('stubtap').setLevel(...)`` controls the whole library.

    Args:
        name: Optional sub-logger name (e.g. 'mock.dispatcher')

    Returns:
        Logger instance

    Example:
        logger = get_logger('mock.registry')
        logger.info("Namespace created")
    """
    if not name:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """
    Set the level of the root StubTap logger.

    Args:
        level: Level name (debug, info, warning, error, critical)

    Raises:
        ValueError: If the level name is unknown
    """
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    get_logger().setLevel(numeric_level)


def get_header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    """
    Look up a header value case-insensitively.

    Works with plain dicts as well as the case-insensitive mappings used by
    requests and httpx.

    Args:
        headers: Header mapping (may be None)
        name: Header name to look up

    Returns:
        Header value as string, or None if absent
    """
    if not headers:
        return None

    wanted = name.lower()
    for key, value in headers.items():
        if isinstance(key, bytes):
            key = key.decode('latin-1')
        if key.lower() == wanted:
            if isinstance(value, bytes):
                return value.decode('latin-1')
            return str(value)

    return None


def body_to_text(body: Any) -> str:
    """
    Convert a request body into text.

    Bytes are decoded as UTF-8 with replacement characters so a binary body
    never raises.

    Args:
        body: Body as str, bytes or None

    Returns:
        Body text ('' for empty bodies)
    """
    if body is None:
        return ''
    if isinstance(body, (bytes, bytearray)):
        return bytes(body).decode('utf-8', errors='replace')
    return str(body)
