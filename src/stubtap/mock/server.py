"""
StubTap Mock Server

In-process HTTP mock that intercepts outbound requests/httpx calls and answers
them from routes registered by test code.

Features:
- Namespaces matched against the request host
- Path parameters, query and body constraints
- Sync and async handlers
- Call log for assertions
- YAML route files
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
import logging
from typing import List, Dict, Any, Optional, Union
import yaml

from ..common import get_logger, set_log_level
from .calls import CallLog, CallOptions, CallRecord
from .dispatcher import Dispatcher
from .intercept import RequestsInterceptor, HttpxInterceptor
from .registry import RouteRegistry, Namespace
from .responses import RenderedResponse
from .route_config import RouteConfig


@dataclass
class MockConfig:
    """Configuration for mock server behavior."""

    # Fallback responses
    not_found_status: int = 404
    not_found_body: str = 'Not Found'
    error_status: int = 500
    error_body: str = 'Server Error'

    # Clients to intercept
    intercept_requests: bool = True
    intercept_httpx: bool = True

    log_level: str = "info"

    def __post_init__(self):
        if not isinstance(getattr(logging, self.log_level.upper(), None), int):
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockConfig':
        """
        Create config from dictionary.

        Raises:
            ValueError: If the dictionary contains unknown keys
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'MockConfig':
        """
        Load config from YAML file.

        Reads the ``config:`` section of a route file, or the whole document
        when there is no such section.
        """
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        if 'config' in data or 'namespaces' in data:
            data = data.get('config') or {}
        return cls.from_dict(data)


@dataclass
class MockMetrics:
    """Track intercepted call counts."""

    total_calls: int = 0
    matched_calls: int = 0
    unmatched_calls: int = 0
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'total_calls': self.total_calls,
            'matched_calls': self.matched_calls,
            'unmatched_calls': self.unmatched_calls,
            'match_rate': round((self.matched_calls / self.total_calls * 100) if self.total_calls > 0 else 0, 2),
            'start_time': self.start_time
        }


class MockServer:
    """
    In-process mock server for outbound HTTP calls.

    While running, every call made with requests or httpx is recorded and
    resolved against the registered routes instead of touching the network.
    Unmatched calls get a 404 response, failing handlers a 500 response.

    Example:
        server = MockServer()
        server.start()

        api = server.namespace('api')
        api.get('/users/:id', lambda ctx: {
            'response': {'id': ctx.params['id']},
            'headers': {'Content-Type': 'application/json'}
        })

        requests.get('https://api.example.com/users/7').json()  # {'id': '7'}
        server.stop()

        # Or as a context manager
        with MockServer() as server:
            ...
    """

    def __init__(self, config: Optional[MockConfig] = None):
        """
        Initialize mock server.

        Args:
            config: Optional MockConfig for server behavior
        """
        self.config = config or MockConfig()

        self.logger = get_logger('mock')

        self.registry = RouteRegistry()
        self.calls = CallLog()
        self.metrics = MockMetrics()
        self.dispatcher = Dispatcher(
            self.registry,
            error_status=self.config.error_status,
            error_body=self.config.error_body
        )
        self.interceptors = self._create_interceptors()
        self._running = False

    def _create_interceptors(self) -> List[Any]:
        interceptors = []
        if self.config.intercept_requests:
            interceptors.append(RequestsInterceptor())
        if self.config.intercept_httpx:
            interceptors.append(HttpxInterceptor())
        return interceptors

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self):
        """
        Apply the configured log level and install the interceptors.

        Warns and does nothing if already running.
        """
        if self._running:
            self.logger.warning('Mock server is already running.')
            return

        set_log_level(self.config.log_level)

        for interceptor in self.interceptors:
            interceptor.install(self._handle_call, self._handle_call_async, self.dispatcher.error_response)

        self._running = True
        self.logger.info('Mock server started.')

    def stop(self):
        """Reset all state and restore the original transports."""
        self.reset()
        self.logger.info('Mock server stopped.')

    def restart(self):
        """Stop, then start again with an empty registry."""
        self.stop()
        self.start()
        self.logger.info('Mock server restarted.')

    def reset(self):
        """Clear namespaces and the call log and restore the original transports."""
        self.registry.clear()
        self.calls.clear()
        self.metrics = MockMetrics()

        for interceptor in self.interceptors:
            interceptor.restore()

        self._running = False
        self.logger.info('Mock server reset.')

    def namespace(self, name: str) -> Namespace:
        """
        Get a registration handle for a namespace, creating it if needed.

        Args:
            name: Namespace name; requests whose host contains it are
                matched against its routes

        Returns:
            Namespace with get/post/put/patch/delete registration methods
        """
        return Namespace(self.registry, name)

    def get_calls(self, url: Optional[str] = None) -> List[CallRecord]:
        """
        Get intercepted calls in chronological order.

        Args:
            url: Optional exact URL to filter on

        Returns:
            List of CallRecords
        """
        return self.calls.query(url)

    def load_routes(self, source: Union[str, Path, Dict[str, Any], RouteConfig]) -> int:
        """
        Register static routes from a YAML route file.

        Args:
            source: Path to a YAML file, a parsed dictionary or a RouteConfig

        Returns:
            Number of routes added (duplicates are skipped)
        """
        if isinstance(source, RouteConfig):
            route_config = source
        elif isinstance(source, dict):
            route_config = RouteConfig.from_dict(source)
        else:
            route_config = RouteConfig.from_yaml(source)

        added = 0
        for name, routes in route_config.namespaces.items():
            for route in routes:
                if self.registry.add_route(
                    name,
                    route.method,
                    route.path,
                    route.handler,
                    query_params=route.query_params,
                    body_params=route.body_params
                ):
                    added += 1

        self.logger.info(f"Loaded {added} routes from route file")
        return added

    def _record_call(self, url: str, method: str, options: CallOptions) -> str:
        method = method.upper()
        self.calls.append(CallRecord(url=url, method=method, options=options))
        self.metrics.total_calls += 1
        self.logger.debug(f"Call intercepted: {method} {url}")
        return method

    def _finish_call(self, url: str, method: str, rendered: Optional[RenderedResponse]) -> RenderedResponse:
        if rendered is not None:
            self.metrics.matched_calls += 1
            return rendered

        self.metrics.unmatched_calls += 1
        self.logger.warning(f"No route found for {method} {url}. Returning {self.config.not_found_status}.")
        return RenderedResponse(
            status=self.config.not_found_status,
            headers={'Content-Type': 'text/plain'},
            body=self.config.not_found_body.encode('utf-8')
        )

    def _handle_call(self, url: str, method: str, options: CallOptions) -> RenderedResponse:
        method = self._record_call(url, method, options)
        rendered = self.dispatcher.resolve(url, method, options)
        return self._finish_call(url, method, rendered)

    async def _handle_call_async(self, url: str, method: str, options: CallOptions) -> RenderedResponse:
        method = self._record_call(url, method, options)
        rendered = await self.dispatcher.resolve_async(url, method, options)
        return self._finish_call(url, method, rendered)

    def __enter__(self) -> 'MockServer':
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()


def create_mock_server(
    not_found_status: int = 404,
    error_status: int = 500,
    log_level: str = "info",
    intercept_requests: bool = True,
    intercept_httpx: bool = True,
    routes: Optional[Union[str, Path, Dict[str, Any]]] = None,
    start: bool = False
) -> MockServer:
    """
    Convenience function to create and configure a mock server.

    Args:
        not_found_status: Status for calls no route matches
        error_status: Status for calls whose handler fails
        log_level: Level of the stubtap logger
        intercept_requests: Intercept the requests library
        intercept_httpx: Intercept the httpx library
        routes: Optional YAML route file (or parsed dict) to load
        start: Start intercepting immediately

    Returns:
        Configured MockServer instance

    Example:
        server = create_mock_server(routes='mocks.yaml', start=True)
    """
    config = MockConfig(
        not_found_status=not_found_status,
        error_status=error_status,
        log_level=log_level,
        intercept_requests=intercept_requests,
        intercept_httpx=intercept_httpx
    )

    server = MockServer(config=config)
    if routes is not None:
        server.load_routes(routes)
    if start:
        server.start()
    return server
