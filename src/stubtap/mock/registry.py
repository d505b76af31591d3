"""
StubTap Route Registry

Namespace-scoped, ordered storage of mock routes.
"""

from typing import Dict, Any, Optional, Callable, Iterator, List, Tuple, Mapping
from dataclasses import dataclass

from ..common import get_logger
from .decoder import BODY_METHODS

logger = get_logger('mock.registry')


@dataclass
class Route:
    """A (method, path pattern) binding to a handler and optional constraints."""

    method: str
    path: str
    handler: Callable[..., Any]
    query_params: Optional[Dict[str, Any]] = None
    body_params: Optional[Dict[str, Any]] = None

    @property
    def key(self) -> Tuple[str, str]:
        """Identity of the route inside its namespace."""
        return (self.method, self.path)


def _as_callable(handler: Any) -> Callable[..., Any]:
    """Accept plain callables or objects exposing ``handle(context)``."""
    if callable(handler):
        return handler
    handle = getattr(handler, 'handle', None)
    if callable(handle):
        return handle
    raise TypeError(f"Route handler must be callable or define handle(), got {type(handler).__name__}")


class RouteRegistry:
    """
    Ordered mapping of namespaces to routes.

    Within a namespace a (method, path) pair can only be registered once; a
    second registration is logged and ignored so the first handler stays
    active.

    Example:
        registry = RouteRegistry()
        registry.add_route('api', 'GET', '/users/:id', get_user)

        for name, routes in registry.namespaces():
            print(name, [r.path for r in routes])
    """

    def __init__(self):
        self._namespaces: Dict[str, Dict[Tuple[str, str], Route]] = {}

    def namespace(self, name: str) -> Dict[Tuple[str, str], Route]:
        """Return the routes of a namespace, creating it on first use."""
        if name not in self._namespaces:
            self._namespaces[name] = {}
            logger.info(f'Namespace "{name}" created.')
        return self._namespaces[name]

    def add_route(
        self,
        namespace: str,
        method: str,
        path: str,
        handler: Any,
        query_params: Optional[Mapping[str, Any]] = None,
        body_params: Optional[Mapping[str, Any]] = None
    ) -> bool:
        """
        Register a route in a namespace.

        Args:
            namespace: Namespace name (matched against the request host)
            method: HTTP method
            path: Path pattern, named parameters prefixed with ':'
            handler: Callable taking a RequestContext
            query_params: Optional query constraints
            body_params: Optional body constraints

        Returns:
            True if the route was added, False if it already existed

        Raises:
            TypeError: If the handler is not callable
        """
        method = method.upper()
        routes = self.namespace(namespace)
        if (method, path) in routes:
            logger.warning(f"Route already exists for {method} {path} in namespace {namespace}.")
            return False

        if body_params and method not in BODY_METHODS:
            logger.warning(f"Body constraints on {method} {path} are never satisfied: only {'/'.join(BODY_METHODS)} bodies are decoded.")

        route = Route(
            method=method,
            path=path,
            handler=_as_callable(handler),
            query_params=dict(query_params) if query_params is not None else None,
            body_params=dict(body_params) if body_params is not None else None
        )

        routes[route.key] = route
        logger.info(f"Route added: [{route.method}] {namespace}{path}")
        return True

    def namespaces(self) -> Iterator[Tuple[str, List[Route]]]:
        """Yield (name, routes) pairs in registration order."""
        for name, routes in list(self._namespaces.items()):
            yield name, list(routes.values())

    def get_routes(self, namespace: str) -> List[Route]:
        """Routes of one namespace in registration order ([] if unknown)."""
        return list(self._namespaces.get(namespace, {}).values())

    def clear(self):
        """Remove every namespace and route."""
        self._namespaces.clear()

    def __contains__(self, namespace: str) -> bool:
        return namespace in self._namespaces

    def __len__(self) -> int:
        return sum(len(routes) for routes in self._namespaces.values())


class Namespace:
    """
    Route registration handle bound to one namespace.

    Each verb method registers a route directly when given a handler, or
    returns a decorator when the handler is omitted.

    Example:
        api = server.namespace('api')
        api.get('/users', lambda ctx: {'response': []})

        @api.post('/users', body_params={'role': 'admin'})
        def create_admin(ctx):
            return {'response': {'ok': True}, 'status': 201}
    """

    def __init__(self, registry: RouteRegistry, name: str):
        self.registry = registry
        self.name = name
        registry.namespace(name)

    def route(
        self,
        method: str,
        path: str,
        handler: Optional[Any] = None,
        query_params: Optional[Mapping[str, Any]] = None,
        body_params: Optional[Mapping[str, Any]] = None
    ):
        """Register a route for an arbitrary method (decorator when handler is None)."""
        if handler is None:
            def decorator(func):
                self.registry.add_route(self.name, method, path, func, query_params, body_params)
                return func
            return decorator

        return self.registry.add_route(self.name, method, path, handler, query_params, body_params)

    def get(self, path: str, handler: Optional[Any] = None, query_params=None, body_params=None):
        return self.route('GET', path, handler, query_params, body_params)

    def post(self, path: str, handler: Optional[Any] = None, query_params=None, body_params=None):
        return self.route('POST', path, handler, query_params, body_params)

    def put(self, path: str, handler: Optional[Any] = None, query_params=None, body_params=None):
        return self.route('PUT', path, handler, query_params, body_params)

    def patch(self, path: str, handler: Optional[Any] = None, query_params=None, body_params=None):
        """
        Register a PATCH route.

        PATCH bodies are not decoded, so a route with non-empty body_params
        never matches (a warning is logged at registration).
        """
        return self.route('PATCH', path, handler, query_params, body_params)

    def delete(self, path: str, handler: Optional[Any] = None, query_params=None, body_params=None):
        return self.route('DELETE', path, handler, query_params, body_params)

    @property
    def routes(self) -> List[Route]:
        """Routes currently registered in this namespace."""
        return self.registry.get_routes(self.name)

    def __repr__(self) -> str:
        return f"Namespace({self.name!r}, routes={len(self.routes)})"
