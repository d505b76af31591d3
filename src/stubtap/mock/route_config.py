"""
StubTap Route Configuration

YAML route files declaring static mock responses per namespace.

Example file:

    config:
      log_level: warning

    namespaces:
      api:
        - method: GET
          path: /users/:id
          status: 200
          headers:
            Content-Type: application/json
          response:
            id: 1
            name: John Doe
        - method: POST
          path: /users
          body_params:
            role: admin
          status: 201
          response: created
"""

from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from dataclasses import dataclass, field
import yaml

from .responses import MockResponse

SUPPORTED_METHODS = ('GET', 'POST', 'PUT', 'PATCH', 'DELETE')


@dataclass
class StaticRoute:
    """A route whose handler always returns the same response."""

    method: str
    path: str
    response: Any = None
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    query_params: Optional[Dict[str, Any]] = None
    body_params: Optional[Dict[str, Any]] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StaticRoute':
        """
        Create StaticRoute from dictionary.

        Raises:
            ValueError: If method or path is missing or the method is unsupported
        """
        if not isinstance(data, dict):
            raise ValueError(f"Route entry must be a mapping, got {type(data).__name__}")

        method = str(data.get('method', 'GET')).upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(f"Unsupported method {method!r} (expected one of {', '.join(SUPPORTED_METHODS)})")

        path = data.get('path')
        if not path:
            raise ValueError(f"Route entry is missing 'path': {data}")

        return cls(
            method=method,
            path=str(path),
            response=data.get('response'),
            status=int(data.get('status', 200)),
            headers={str(k): str(v) for k, v in (data.get('headers') or {}).items()},
            query_params=data.get('query_params'),
            body_params=data.get('body_params')
        )

    def handler(self, context) -> MockResponse:
        """Return the canned response (ignores the request context)."""
        return MockResponse(
            response=self.response,
            status=self.status,
            headers=dict(self.headers)
        )


@dataclass
class RouteConfig:
    """Parsed route file: optional server settings plus routes per namespace."""

    namespaces: Dict[str, List[StaticRoute]] = field(default_factory=dict)
    config: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> 'RouteConfig':
        """Load route configuration from YAML file."""
        with open(yaml_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RouteConfig':
        """
        Create route configuration from dictionary.

        Raises:
            ValueError: If the structure is not namespaces -> list of routes
        """
        if not isinstance(data, dict):
            raise ValueError(f"Route file must contain a mapping, got {type(data).__name__}")

        raw_namespaces = data.get('namespaces') or {}
        if not isinstance(raw_namespaces, dict):
            raise ValueError("'namespaces' must map namespace names to route lists")

        namespaces = {}
        for name, routes in raw_namespaces.items():
            if not isinstance(routes, list):
                raise ValueError(f"Routes of namespace {name!r} must be a list")
            namespaces[str(name)] = [StaticRoute.from_dict(route) for route in routes]

        return cls(namespaces=namespaces, config=dict(data.get('config') or {}))

    @property
    def route_count(self) -> int:
        return sum(len(routes) for routes in self.namespaces.values())
