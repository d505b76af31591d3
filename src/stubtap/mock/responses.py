"""
StubTap Response Model

Response descriptors returned by route handlers and the rendered,
transport-neutral responses the interceptors turn into real
requests/httpx response objects.
"""

import json
from enum import Enum
from typing import Dict, Any, Optional, Mapping
from dataclasses import dataclass, field

from ..common import get_header
from .decoder import ContentKind


def _header_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('latin-1')
    return str(value)


class BodyKind(Enum):
    """How a response payload is turned into body bytes."""

    JSON = 'json'
    TEXT = 'text'
    RAW = 'raw'


@dataclass
class MockResponse:
    """
    Response descriptor produced by a route handler.

    Example:
        def get_user(ctx):
            return MockResponse(
                response={'id': ctx.params['id']},
                headers={'Content-Type': 'application/json'}
            )
    """

    response: Any = None
    status: int = 200
    headers: Dict[str, str] = field(default_factory=dict)
    kind: Optional[BodyKind] = None

    @classmethod
    def from_value(cls, value: Any) -> 'MockResponse':
        """
        Coerce a handler return value into a MockResponse.

        Accepts a MockResponse, a mapping with ``response``/``status``/
        ``headers`` keys, or a bare str/bytes payload.

        Args:
            value: Handler return value

        Returns:
            MockResponse

        Raises:
            TypeError: If the value has no usable shape
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, Mapping):
            kind = value.get('kind')
            return cls(
                response=value.get('response'),
                status=int(value.get('status', 200)),
                headers=dict(value.get('headers') or {}),
                kind=BodyKind(kind) if isinstance(kind, str) else kind
            )

        if isinstance(value, (str, bytes)):
            return cls(response=value)

        raise TypeError(f"Handler returned unsupported value of type {type(value).__name__}")

    def resolve_kind(self) -> BodyKind:
        """
        Decide how the payload is serialized.

        An explicit kind wins; otherwise a JSON Content-Type header selects
        JSON, and the payload type decides the rest.
        """
        if self.kind is not None:
            return self.kind

        content_type = get_header(self.headers, 'Content-Type')
        if ContentKind.from_header(content_type) is ContentKind.JSON:
            return BodyKind.JSON

        if self.response is None or isinstance(self.response, (bytes, bytearray)):
            return BodyKind.RAW
        if isinstance(self.response, str):
            return BodyKind.TEXT
        return BodyKind.JSON

    def render(self) -> 'RenderedResponse':
        """
        Serialize the descriptor into a RenderedResponse.

        Header names and values are converted to text.

        Raises:
            TypeError: If a JSON payload is not serializable
        """
        kind = self.resolve_kind()
        headers = {_header_text(name): _header_text(value) for name, value in self.headers.items()}

        if kind is BodyKind.JSON:
            body = json.dumps(self.response).encode('utf-8')
            if self.kind is BodyKind.JSON and get_header(headers, 'Content-Type') is None:
                headers['Content-Type'] = 'application/json'
        elif self.response is None:
            body = b''
        elif isinstance(self.response, (bytes, bytearray)):
            body = bytes(self.response)
        else:
            body = str(self.response).encode('utf-8')

        return RenderedResponse(status=self.status, headers=headers, body=body)


@dataclass
class RenderedResponse:
    """Final status, headers and body bytes of a synthetic response."""

    status: int
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b''

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode('utf-8', errors='replace')

    def json(self) -> Any:
        """Body parsed as JSON."""
        return json.loads(self.body)
