"""
StubTap Mock Module

In-process HTTP mocking for requests and httpx.

This module provides:
- Namespace-scoped route registry
- Path, query and body matching engine
- Handler dispatch with sync and async handlers
- Transport interceptors and call log
"""

from .server import MockServer, MockConfig, MockMetrics, create_mock_server
from .matcher import RouteMatcher, MatchResult, match_path, match_params
from .decoder import ContentKind, decode_query, decode_body
from .registry import Route, RouteRegistry, Namespace
from .dispatcher import Dispatcher, RequestContext
from .responses import MockResponse, BodyKind, RenderedResponse
from .calls import CallLog, CallRecord, CallOptions
from .intercept import RequestsInterceptor, HttpxInterceptor
from .route_config import RouteConfig, StaticRoute

__all__ = [
    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'create_mock_server',

    # Matching
    'RouteMatcher',
    'MatchResult',
    'match_path',
    'match_params',
    'ContentKind',
    'decode_query',
    'decode_body',

    # Registry and dispatch
    'Route',
    'RouteRegistry',
    'Namespace',
    'Dispatcher',
    'RequestContext',
    'MockResponse',
    'BodyKind',
    'RenderedResponse',

    # Call log and interception
    'CallLog',
    'CallRecord',
    'CallOptions',
    'RequestsInterceptor',
    'HttpxInterceptor',

    # Route files
    'RouteConfig',
    'StaticRoute',
]
