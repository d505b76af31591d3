"""
Tests for StubTap Route Configuration

Tests YAML route files including:
- YAML loading and parsing
- Validation errors
- Registering static routes on a server
- Reading server config from the same file
"""

import tempfile
from pathlib import Path

import pytest
import requests

from stubtap.mock.route_config import RouteConfig, StaticRoute
from stubtap.mock.server import MockConfig, MockServer


@pytest.fixture
def sample_yaml_routes():
    """Sample YAML route file."""
    return """
config:
  not_found_status: 410
  log_level: warning

namespaces:
  api:
    - method: GET
      path: /users/:id
      headers:
        Content-Type: application/json
      response:
        id: 1
        name: John Doe
    - method: post
      path: /users
      status: 201
      body_params:
        role: admin
      response: created
  admin:
    - path: /dashboard
      response: dashboard
"""


@pytest.fixture
def temp_yaml_file(sample_yaml_routes):
    """Create temporary YAML route file."""
    with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
        f.write(sample_yaml_routes)
        temp_path = f.name

    yield temp_path

    Path(temp_path).unlink()


class TestStaticRoute:
    """Test StaticRoute dataclass."""

    def test_from_dict_defaults(self):
        """Test defaults for optional fields."""
        route = StaticRoute.from_dict({'path': '/ping'})

        assert route.method == 'GET'
        assert route.status == 200
        assert route.headers == {}
        assert route.query_params is None

    def test_missing_path(self):
        """Test path is required."""
        with pytest.raises(ValueError, match='path'):
            StaticRoute.from_dict({'method': 'GET'})

    def test_unsupported_method(self):
        """Test unknown methods are rejected."""
        with pytest.raises(ValueError, match='TRACE'):
            StaticRoute.from_dict({'method': 'TRACE', 'path': '/x'})

    def test_handler_returns_canned_response(self):
        """Test handler ignores the request."""
        route = StaticRoute.from_dict({'path': '/x', 'status': 202, 'response': 'ok'})

        response = route.handler(None)

        assert response.status == 202
        assert response.response == 'ok'


class TestRouteConfig:
    """Test RouteConfig loading."""

    def test_from_yaml(self, temp_yaml_file):
        """Test loading routes from YAML."""
        config = RouteConfig.from_yaml(temp_yaml_file)

        assert list(config.namespaces) == ['api', 'admin']
        assert config.route_count == 3
        assert config.namespaces['api'][1].method == 'POST'
        assert config.namespaces['api'][1].body_params == {'role': 'admin'}
        assert config.config['not_found_status'] == 410

    def test_empty_file(self):
        """Test empty YAML yields no routes."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            temp_path = f.name

        try:
            config = RouteConfig.from_yaml(temp_path)
        finally:
            Path(temp_path).unlink()

        assert config.route_count == 0

    def test_namespace_routes_must_be_list(self):
        """Test invalid namespace structure."""
        with pytest.raises(ValueError, match='must be a list'):
            RouteConfig.from_dict({'namespaces': {'api': {'path': '/x'}}})

    def test_document_must_be_mapping(self):
        """Test non-mapping document is rejected."""
        with pytest.raises(ValueError):
            RouteConfig.from_dict(['not', 'a', 'mapping'])


class TestLoadRoutes:
    """Test registering route files on a server."""

    def test_load_routes_from_yaml(self, temp_yaml_file):
        """Test routes from YAML answer real calls."""
        with MockServer() as server:
            added = server.load_routes(temp_yaml_file)

            user = requests.get('https://api.example.com/users/1')
            created = requests.post('https://api.example.com/users', json={'role': 'admin'})
            rejected = requests.post('https://api.example.com/users', json={'role': 'user'})
            dashboard = requests.get('https://admin.example.com/dashboard')

        assert added == 3
        assert user.json() == {'id': 1, 'name': 'John Doe'}
        assert created.status_code == 201
        assert created.text == 'created'
        assert rejected.status_code == 404
        assert dashboard.text == 'dashboard'

    def test_load_routes_skips_duplicates(self):
        """Test loading the same routes twice adds nothing."""
        routes = {'namespaces': {'api': [{'path': '/ping', 'response': 'pong'}]}}
        server = MockServer()

        assert server.load_routes(routes) == 1
        assert server.load_routes(routes) == 0

    def test_config_from_route_file(self, temp_yaml_file):
        """Test MockConfig reads the config section."""
        config = MockConfig.from_yaml(temp_yaml_file)

        assert config.not_found_status == 410
        assert config.log_level == 'warning'

    def test_config_from_bare_yaml(self):
        """Test MockConfig reads a bare mapping."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            f.write("error_status: 503\nerror_body: down\n")
            temp_path = f.name

        try:
            config = MockConfig.from_yaml(temp_path)
        finally:
            Path(temp_path).unlink()

        assert config.error_status == 503
        assert config.error_body == 'down'
