"""
StubTap

Declare expected HTTP calls and canned responses in tests; every outbound
requests/httpx call is answered in-process instead of going to the network.
"""

from .mock import (
    MockServer,
    MockConfig,
    MockResponse,
    BodyKind,
    RequestContext,
    CallRecord,
    create_mock_server,
)

__all__ = [
    'MockServer',
    'MockConfig',
    'MockResponse',
    'BodyKind',
    'RequestContext',
    'CallRecord',
    'create_mock_server',
]

__version__ = '1.0.0'
