"""
StubTap Route Matcher

Matching engine that finds the registered route answering an intercepted
request.

Features:
- Path pattern matching with named parameters (/users/:id)
- Partial query parameter constraints
- Partial body parameter constraints
- Host-substring namespace selection
- First-registered-wins ordering (no specificity scoring)
"""

from typing import Dict, Any, Optional, Mapping
from dataclasses import dataclass, field

from ..common import get_logger, URLParser

PARAM_MARKER = ':'

logger = get_logger('mock.matcher')


def match_path(path: str, pattern: str) -> Optional[Dict[str, str]]:
    """
    Match a concrete request path against a route pattern.

    Pattern segments starting with ``:`` bind the concrete segment verbatim.
    Segment counts must be equal and literal segments must match exactly.

    Args:
        path: Concrete request path (e.g. '/users/123')
        pattern: Route pattern (e.g. '/users/:id')

    Returns:
        Dict of parameter bindings, or None if the path does not match

    Example:
        >>> match_path('/users/123', '/users/:id')
        {'id': '123'}
        >>> match_path('/users/123/extra', '/users/:id') is None
        True
    """
    path_segments = path.split('/')
    pattern_segments = pattern.split('/')

    if len(path_segments) != len(pattern_segments):
        return None

    params: Dict[str, str] = {}
    for segment, pattern_segment in zip(path_segments, pattern_segments):
        if pattern_segment.startswith(PARAM_MARKER) and len(pattern_segment) > 1:
            if not segment:
                return None
            params[pattern_segment[1:]] = segment
        elif segment != pattern_segment:
            return None

    return params


def match_params(observed: Mapping[str, Any], expected: Optional[Mapping[str, Any]]) -> bool:
    """
    Check observed parameters against an expected constraint mapping.

    No constraints means "don't care". Otherwise every expected key must be
    present with an equal value; extra observed keys are ignored.

    Args:
        observed: Decoded query or body parameters
        expected: Constraint mapping, or None

    Returns:
        True if all constraints are satisfied
    """
    if expected is None:
        return True

    for key, value in expected.items():
        if key not in observed or observed[key] != value:
            return False

    return True


@dataclass
class MatchResult:
    """Result of matching a request against the registry."""

    matched: bool
    route: Optional[Any] = None
    namespace: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'matched': self.matched,
            'namespace': self.namespace,
            'method': self.route.method if self.route else None,
            'path': self.route.path if self.route else None,
            'params': dict(self.params),
            'reason': self.reason
        }


class RouteMatcher:
    """
    Scans a route registry for the first route accepting a request.

    Namespaces are visited in registration order and only take part when the
    request host contains the namespace name. Inside a namespace, routes are
    tried in registration order; the first one whose method, path, query
    constraints and body constraints all match wins.

    Example:
        matcher = RouteMatcher(registry)
        result = matcher.find_match('GET', 'https://api.example.com/users/1', {}, {})

        if result.matched:
            print(result.route.path, result.params)
    """

    def __init__(self, registry):
        """
        Initialize route matcher.

        Args:
            registry: RouteRegistry to scan
        """
        self.registry = registry

    def find_match(
        self,
        method: str,
        url: str,
        query_params: Mapping[str, Any],
        body_params: Mapping[str, Any]
    ) -> MatchResult:
        """
        Find the first route matching an incoming request.

        Args:
            method: HTTP method (upper case)
            url: Full request URL
            query_params: Decoded query parameters
            body_params: Decoded body parameters

        Returns:
            MatchResult with the selected route or no match
        """
        try:
            components = URLParser.parse_url_components(url)
        except ValueError as e:
            logger.warning(f"Cannot parse URL {url!r}: {e}")
            return MatchResult(matched=False, reason=f"Unparseable URL: {e}")

        hostname = components['hostname']
        path = components['path']

        for name, routes in self.registry.namespaces():
            if name not in hostname:
                continue

            for route in routes:
                if route.method != method:
                    continue

                params = match_path(path, route.path)
                if params is None:
                    continue

                if not match_params(query_params, route.query_params):
                    continue
                if not match_params(body_params, route.body_params):
                    continue

                logger.info(f"Route matched: {name}{route.path}")
                return MatchResult(
                    matched=True,
                    route=route,
                    namespace=name,
                    params=params,
                    reason=f"Matched {route.method} {route.path} in namespace {name!r}"
                )

        return MatchResult(matched=False, reason=f"No route for {method} {url}")
