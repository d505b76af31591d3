"""
StubTap Common Utilities

Shared utilities and helpers used across StubTap modules.
"""

from .utils import get_logger, set_log_level, get_header, body_to_text
from .url_utils import URLParser

__all__ = [
    'get_logger',
    'set_log_level',
    'get_header',
    'body_to_text',
    'URLParser'
]
