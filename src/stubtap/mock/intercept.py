"""
StubTap Interceptors

Replace the transport layer of the supported HTTP clients with a hook that
answers every call in-process, and restore the originals afterwards.

Supported clients:
- requests: requests.adapters.HTTPAdapter.send
- httpx: httpx.HTTPTransport.handle_request and
  httpx.AsyncHTTPTransport.handle_async_request
"""

from http import HTTPStatus
from typing import Any, Callable, Awaitable, List, Optional

import httpx
import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from ..common import get_logger, get_header
from .calls import CallOptions
from .responses import RenderedResponse

logger = get_logger('mock.intercept')

CallHook = Callable[[str, str, CallOptions], RenderedResponse]
AsyncCallHook = Callable[[str, str, CallOptions], Awaitable[RenderedResponse]]
FallbackFactory = Callable[[], RenderedResponse]


def _reason_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ''


def _charset(content_type: Optional[str]) -> str:
    """Charset parameter of a Content-Type value, utf-8 when absent."""
    if content_type:
        for param in content_type.split(';')[1:]:
            name, _, value = param.partition('=')
            if name.strip().lower() == 'charset' and value.strip():
                return value.strip().strip('"\'')
    return 'utf-8'


def build_requests_response(adapter: Any, request: requests.PreparedRequest, rendered: RenderedResponse) -> requests.Response:
    """
    Build a requests.Response from a rendered mock response.

    Args:
        adapter: Adapter the call went through
        request: The prepared request being answered
        rendered: Rendered mock response

    Returns:
        Fully loaded requests.Response
    """
    response = requests.Response()
    response.status_code = rendered.status
    response.headers = CaseInsensitiveDict(rendered.headers)
    response.reason = _reason_phrase(rendered.status)
    response.encoding = _charset(get_header(rendered.headers, 'Content-Type'))
    response._content = rendered.body
    response._content_consumed = True
    response.url = request.url
    response.request = request
    response.connection = adapter
    return response


def build_httpx_response(request: httpx.Request, rendered: RenderedResponse) -> httpx.Response:
    """Build an httpx.Response from a rendered mock response."""
    return httpx.Response(
        status_code=rendered.status,
        headers=rendered.headers,
        content=rendered.body,
        request=request
    )




def _default_fallback() -> RenderedResponse:
    return RenderedResponse(
        status=500,
        headers={'Content-Type': 'text/plain'},
        body=b'Server Error'
    )


class _Interceptor:
    """
    Install/restore bookkeeping shared by the client interceptors.

    The client's original entry points are saved when the first interceptor
    of a kind is installed and put back when the last one is restored. While
    several are installed (overlapping mock servers) the newest one answers.
    """

    name = ''
    _active: List['_Interceptor'] = []

    def __init__(self):
        self.hook: Optional[CallHook] = None
        self.async_hook: Optional[AsyncCallHook] = None
        self.fallback: FallbackFactory = _default_fallback

    @property
    def installed(self) -> bool:
        return any(active is self for active in self._active)

    @classmethod
    def current(cls) -> '_Interceptor':
        """The interceptor currently answering calls."""
        return cls._active[-1]

    def install(
        self,
        hook: CallHook,
        async_hook: Optional[AsyncCallHook] = None,
        fallback: Optional[FallbackFactory] = None
    ):
        """
        Start routing calls through the hooks (no-op if already installed).

        Args:
            hook: Answers calls made from synchronous code
            async_hook: Answers calls made from asynchronous code (defaults
                to the sync hook)
            fallback: Builds the response used when the hook's result cannot
                be turned into a client response
        """
        if self.installed:
            return

        self.hook = hook
        self.async_hook = async_hook
        self.fallback = fallback or _default_fallback

        cls = type(self)
        if cls._active:
            logger.warning(f"{self.name} transport is already intercepted by another mock server; the newest one answers calls.")
        else:
            cls._patch()
            logger.debug(f"{self.name} transport intercepted")
        cls._active.append(self)

    def restore(self):
        """Stop routing calls through this interceptor."""
        if not self.installed:
            return

        cls = type(self)
        cls._active[:] = [active for active in cls._active if active is not self]
        self.hook = None
        self.async_hook = None

        if not cls._active:
            cls._unpatch()
            logger.debug(f"{self.name} transport restored")

    def _respond(self, build: Callable[[RenderedResponse], Any], rendered: RenderedResponse) -> Any:
        try:
            return build(rendered)
        except Exception as e:
            logger.error(f"Error building {self.name} response: {e}")
            return build(self.fallback())

    @classmethod
    def _patch(cls):
        raise NotImplementedError

    @classmethod
    def _unpatch(cls):
        raise NotImplementedError


def _requests_send(adapter, request, **kwargs):
    return RequestsInterceptor.current().answer(adapter, request)


class RequestsInterceptor(_Interceptor):
    """
    Routes every requests call through a hook.

    Patches HTTPAdapter.send, which all Sessions (and the module level
    requests.get/post/... helpers) go through.
    """

    name = 'requests'
    _active: List['RequestsInterceptor'] = []
    _original_send = None

    def answer(self, adapter: Any, request: requests.PreparedRequest) -> requests.Response:
        body = request.body if isinstance(request.body, (str, bytes)) else None
        options = CallOptions(headers=dict(request.headers), body=body)
        rendered = self.hook(request.url, request.method, options)
        return self._respond(lambda r: build_requests_response(adapter, request, r), rendered)

    @classmethod
    def _patch(cls):
        cls._original_send = HTTPAdapter.send
        HTTPAdapter.send = _requests_send

    @classmethod
    def _unpatch(cls):
        HTTPAdapter.send = cls._original_send
        cls._original_send = None


def _httpx_handle_request(transport, request):
    return HttpxInterceptor.current().answer(request)


async def _httpx_handle_async_request(transport, request):
    return await HttpxInterceptor.current().answer_async(request)


class HttpxInterceptor(_Interceptor):
    """
    Routes every httpx call through a hook.

    Patches the default sync and async transports. Clients built with a
    custom transport (e.g. httpx.MockTransport) are left alone.
    """

    name = 'httpx'
    _active: List['HttpxInterceptor'] = []
    _original_sync = None
    _original_async = None

    def answer(self, request: httpx.Request) -> httpx.Response:
        options = CallOptions(headers=dict(request.headers), body=request.read())
        rendered = self.hook(str(request.url), request.method, options)
        return self._respond(lambda r: build_httpx_response(request, r), rendered)

    async def answer_async(self, request: httpx.Request) -> httpx.Response:
        options = CallOptions(headers=dict(request.headers), body=await request.aread())
        if self.async_hook is not None:
            rendered = await self.async_hook(str(request.url), request.method, options)
        else:
            rendered = self.hook(str(request.url), request.method, options)
        return self._respond(lambda r: build_httpx_response(request, r), rendered)

    @classmethod
    def _patch(cls):
        cls._original_sync = httpx.HTTPTransport.handle_request
        cls._original_async = httpx.AsyncHTTPTransport.handle_async_request
        httpx.HTTPTransport.handle_request = _httpx_handle_request
        httpx.AsyncHTTPTransport.handle_async_request = _httpx_handle_async_request

    @classmethod
    def _unpatch(cls):
        httpx.HTTPTransport.handle_request = cls._original_sync
        httpx.AsyncHTTPTransport.handle_async_request = cls._original_async
        cls._original_sync = None
        cls._original_async = None
