"""Shared fixtures for StubTap tests."""

import pytest

from stubtap.mock.server import MockServer, MockConfig


@pytest.fixture
def server():
    """Running mock server, stopped (and transports restored) after the test."""
    mock_server = MockServer(MockConfig(log_level='debug'))
    mock_server.start()

    yield mock_server

    mock_server.stop()


@pytest.fixture
def json_headers():
    """Response headers declaring a JSON body."""
    return {'Content-Type': 'application/json'}
