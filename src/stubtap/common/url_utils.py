"""
StubTap URL Utilities

Shared URL parsing helpers used by the request decoder and the dispatcher.
"""

from urllib.parse import urlparse, parse_qsl
from typing import Dict, Any, List, Tuple


class URLParser:
    """Splits request URLs into the parts route matching works on."""

    @staticmethod
    def parse_url_components(url: str) -> Dict[str, Any]:
        """
        Parse URL into components for easy access.

        Args:
            url: URL to parse

        Returns:
            Dict with scheme, netloc, hostname, port, path, query and fragment

        Raises:
            ValueError: If the URL cannot be parsed (e.g. bad IPv6 netloc)
        """
        parsed = urlparse(url)
        return {
            'scheme': parsed.scheme,
            'netloc': parsed.netloc,
            'hostname': parsed.hostname or '',
            'port': parsed.port,
            'path': parsed.path or '/',
            'query': parsed.query,
            'fragment': parsed.fragment
        }

    @staticmethod
    def query_items(url: str) -> List[Tuple[str, str]]:
        """
        Return the query string of a URL as ordered key/value pairs.

        Blank values are kept (``?flag=`` yields ``('flag', '')``).

        Args:
            url: Full URL

        Returns:
            List of (key, value) tuples in URL order
        """
        return parse_qsl(urlparse(url).query, keep_blank_values=True)
