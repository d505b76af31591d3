"""
StubTap Dispatcher

Resolves intercepted calls against the route registry, runs the matched
handler and renders its result into a synthetic response.

Handler failures never escape: they are logged and answered with the
configured error response.
"""

import asyncio
import inspect
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Any, Optional, Tuple
from dataclasses import dataclass, field

from ..common import get_logger, get_header, body_to_text
from .calls import CallOptions
from .decoder import decode_query, decode_body
from .matcher import RouteMatcher, MatchResult
from .responses import MockResponse, RenderedResponse

logger = get_logger('mock.dispatcher')


@dataclass
class RequestContext:
    """Decoded request data handed to a route handler."""

    query_params: Dict[str, Any] = field(default_factory=dict)
    body_params: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, str] = field(default_factory=dict)
    method: str = 'GET'
    url: str = ''
    headers: Dict[str, str] = field(default_factory=dict)
    body: str = ''

    def __getitem__(self, key: str) -> Any:
        # ctx['params'] style access for handlers written against plain dicts
        return getattr(self, key)


def _run_coroutine(awaitable) -> Any:
    """Drive an awaitable to completion from synchronous code."""
    async def _await():
        return await awaitable

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_await())

    # A loop is already running in this thread; run on a worker thread instead
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, _await()).result()


class Dispatcher:
    """
    Matches calls to routes and executes handlers.

    Example:
        dispatcher = Dispatcher(registry)
        rendered = dispatcher.resolve('https://api.example.com/users', 'GET', CallOptions())

        if rendered is None:
            print("no route")
    """

    def __init__(
        self,
        registry,
        error_status: int = 500,
        error_body: str = 'Server Error'
    ):
        """
        Initialize dispatcher.

        Args:
            registry: RouteRegistry to resolve against
            error_status: Status returned when a handler fails
            error_body: Body returned when a handler fails
        """
        self.registry = registry
        self.matcher = RouteMatcher(registry)
        self.error_status = error_status
        self.error_body = error_body

    def match(self, url: str, method: str, options: CallOptions) -> Tuple[MatchResult, Optional[RequestContext]]:
        """
        Decode a call and find the route that answers it.

        Args:
            url: Full request URL
            method: HTTP method
            options: Call headers and body

        Returns:
            (MatchResult, RequestContext) - the context is None without a match
        """
        method = method.upper()
        query_params = decode_query(url)
        content_type = get_header(options.headers, 'Content-Type')
        body_params = decode_body(method, options.body, content_type)

        result = self.matcher.find_match(method, url, query_params, body_params)
        if not result.matched:
            return result, None

        context = RequestContext(
            query_params=query_params,
            body_params=body_params,
            params=result.params,
            method=method,
            url=url,
            headers=dict(options.headers),
            body=body_to_text(options.body)
        )
        return result, context

    def resolve(self, url: str, method: str, options: Optional[CallOptions] = None) -> Optional[RenderedResponse]:
        """
        Resolve a call from synchronous code.

        Coroutine handlers are run to completion on an event loop.

        Returns:
            RenderedResponse, or None if no route matched
        """
        result, context = self.match(url, method, options or CallOptions())
        if context is None:
            return None

        try:
            outcome = result.route.handler(context)
            if inspect.isawaitable(outcome):
                outcome = _run_coroutine(outcome)
            return self._render(outcome)
        except Exception as e:
            return self._handler_failed(e)

    async def resolve_async(self, url: str, method: str, options: Optional[CallOptions] = None) -> Optional[RenderedResponse]:
        """
        Resolve a call from asynchronous code, awaiting coroutine handlers.

        Returns:
            RenderedResponse, or None if no route matched
        """
        result, context = self.match(url, method, options or CallOptions())
        if context is None:
            return None

        try:
            outcome = result.route.handler(context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            return self._render(outcome)
        except Exception as e:
            return self._handler_failed(e)

    def _render(self, outcome: Any) -> RenderedResponse:
        rendered = MockResponse.from_value(outcome).render()
        logger.info(f"Handler executed successfully with status {rendered.status}.")
        return rendered

    def error_response(self) -> RenderedResponse:
        """Response answered when a handler fails."""
        return RenderedResponse(
            status=self.error_status,
            headers={'Content-Type': 'text/plain'},
            body=self.error_body.encode('utf-8')
        )

    def _handler_failed(self, error: Exception) -> RenderedResponse:
        logger.error(f"Error executing handler: {error}")
        return self.error_response()
