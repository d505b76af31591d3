"""
StubTap Request Decoder

Decodes the query string and body of an intercepted request into the flat
key/value mappings that route constraints and handlers work with.
"""

import json
from enum import Enum
from typing import Dict, Any, Optional
from urllib.parse import parse_qsl

from ..common import get_logger, body_to_text, URLParser

logger = get_logger('mock.decoder')

# Methods whose body is decoded; everything else gets an empty mapping
BODY_METHODS = ('POST', 'PUT')


class ContentKind(Enum):
    """Request body encodings the decoder understands."""

    JSON = 'json'
    FORM = 'form'
    TEXT = 'text'
    NONE = 'none'

    @classmethod
    def from_header(cls, content_type: Optional[str]) -> 'ContentKind':
        """
        Map a Content-Type header value to a content kind.

        Media type parameters (``; charset=utf-8``) are ignored and the
        comparison is case-insensitive.

        Args:
            content_type: Raw Content-Type header value, or None

        Returns:
            Matching ContentKind (NONE for missing or unknown types)

        Example:
            >>> ContentKind.from_header('Application/JSON; charset=utf-8')
            <ContentKind.JSON: 'json'>
        """
        if not content_type:
            return cls.NONE

        media_type = content_type.split(';', 1)[0].strip().lower()

        if media_type == 'application/json' or media_type.endswith('+json'):
            return cls.JSON
        if media_type == 'application/x-www-form-urlencoded':
            return cls.FORM
        if media_type == 'text/plain':
            return cls.TEXT
        return cls.NONE


def decode_query(url: str) -> Dict[str, str]:
    """
    Decode the query string of a URL into a flat mapping.

    A key repeated in the query keeps its last value.

    Args:
        url: Full request URL

    Returns:
        Dict of query parameters
    """
    try:
        return dict(URLParser.query_items(url))
    except ValueError as e:
        logger.error(f"Error parsing query string of {url!r}: {e}")
        return {}


def decode_body(method: str, body: Any, content_type: Optional[str]) -> Dict[str, Any]:
    """
    Decode a request body according to its declared content kind.

    Only POST and PUT bodies are decoded. A JSON body that fails to parse, or
    that is not a JSON object, is logged and yields an empty mapping.

    Args:
        method: HTTP method (upper case)
        body: Raw body (str, bytes or None)
        content_type: Content-Type header value, or None

    Returns:
        Dict of body parameters
    """
    if method not in BODY_METHODS or not body:
        return {}

    kind = ContentKind.from_header(content_type)
    text = body_to_text(body)

    if kind is ContentKind.JSON:
        try:
            parsed = json.loads(text)
        except ValueError as e:
            logger.error(f"Error parsing body: {e}")
            return {}
        if not isinstance(parsed, dict):
            logger.error(f"Error parsing body: expected a JSON object, got {type(parsed).__name__}")
            return {}
        return parsed

    if kind is ContentKind.FORM:
        return dict(parse_qsl(text, keep_blank_values=True))

    if kind is ContentKind.TEXT:
        return {'text': text}

    return {}
