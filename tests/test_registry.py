"""
Tests for StubTap Route Registry

Tests route registration including:
- Namespace creation
- Duplicate rejection (first registration wins)
- Namespace handles and decorator registration
- Handler validation
"""

import logging

import pytest

from stubtap.mock.registry import Route, RouteRegistry, Namespace


def first(ctx):
    return {'response': 'first'}


def second(ctx):
    return {'response': 'second'}


class TestRouteRegistry:
    """Test RouteRegistry class."""

    def test_namespace_created_on_first_use(self):
        """Test add_route creates the namespace."""
        registry = RouteRegistry()

        assert registry.add_route('api', 'GET', '/users', first) is True
        assert 'api' in registry
        assert len(registry) == 1

    def test_method_is_uppercased(self):
        """Test methods are normalized."""
        registry = RouteRegistry()
        registry.add_route('api', 'get', '/users', first)

        assert registry.get_routes('api')[0].method == 'GET'

    def test_duplicate_is_ignored(self, caplog):
        """Test second registration is logged and dropped."""
        registry = RouteRegistry()
        registry.add_route('api', 'GET', '/users', first)

        with caplog.at_level(logging.WARNING, logger='stubtap'):
            added = registry.add_route('api', 'GET', '/users', second)

        routes = registry.get_routes('api')
        assert added is False
        assert len(routes) == 1
        assert routes[0].handler is first
        assert 'Route already exists for GET /users in namespace api' in caplog.text

    def test_same_route_in_other_namespace(self):
        """Test duplicates are scoped per namespace."""
        registry = RouteRegistry()

        assert registry.add_route('api', 'PUT', '/settings', first) is True
        assert registry.add_route('admin', 'PUT', '/settings', second) is True

    def test_same_path_other_method(self):
        """Test method is part of route identity."""
        registry = RouteRegistry()

        assert registry.add_route('api', 'GET', '/users', first) is True
        assert registry.add_route('api', 'POST', '/users', second) is True

    def test_registration_order_preserved(self):
        """Test namespaces and routes iterate in insertion order."""
        registry = RouteRegistry()
        registry.add_route('b', 'GET', '/two', first)
        registry.add_route('a', 'GET', '/one', first)
        registry.add_route('b', 'GET', '/three', first)

        listing = [(name, [r.path for r in routes]) for name, routes in registry.namespaces()]

        assert listing == [('b', ['/two', '/three']), ('a', ['/one'])]

    def test_constraints_are_copied(self):
        """Test constraint mappings are stored as copies."""
        registry = RouteRegistry()
        constraints = {'role': 'admin'}
        registry.add_route('api', 'GET', '/users', first, query_params=constraints)
        constraints['role'] = 'user'

        assert registry.get_routes('api')[0].query_params == {'role': 'admin'}

    def test_clear(self):
        """Test clearing removes namespaces."""
        registry = RouteRegistry()
        registry.add_route('api', 'GET', '/users', first)

        registry.clear()

        assert 'api' not in registry
        assert list(registry.namespaces()) == []

    def test_non_callable_handler(self):
        """Test invalid handler is rejected at registration."""
        registry = RouteRegistry()

        with pytest.raises(TypeError):
            registry.add_route('api', 'GET', '/users', {'response': 'x'})

    def test_duplicate_with_invalid_handler_is_ignored(self, caplog):
        """Test a duplicate is logged and ignored before the handler is validated."""
        registry = RouteRegistry()
        registry.add_route('api', 'GET', '/users', first)

        with caplog.at_level(logging.WARNING, logger='stubtap'):
            added = registry.add_route('api', 'GET', '/users', {'response': 'x'})

        assert added is False
        assert 'Route already exists for GET /users in namespace api' in caplog.text
        assert registry.get_routes('api')[0].handler is first

    def test_body_constraints_on_bodyless_method_warn(self, caplog):
        """Test body constraints on a method whose body is not decoded are flagged."""
        registry = RouteRegistry()

        with caplog.at_level(logging.WARNING, logger='stubtap'):
            added = registry.add_route('api', 'PATCH', '/users/:id', first, body_params={'name': 'x'})

        assert added is True
        assert 'Body constraints on PATCH /users/:id are never satisfied' in caplog.text

    def test_body_constraints_on_post_do_not_warn(self, caplog):
        """Test body constraints on POST register silently."""
        registry = RouteRegistry()

        with caplog.at_level(logging.WARNING, logger='stubtap'):
            registry.add_route('api', 'POST', '/users', first, body_params={'name': 'x'})

        assert 'never satisfied' not in caplog.text

    def test_handler_object(self):
        """Test objects exposing handle() are accepted."""
        class UserHandler:
            def handle(self, ctx):
                return {'response': 'ok'}

        registry = RouteRegistry()
        registry.add_route('api', 'GET', '/users', UserHandler())

        route = registry.get_routes('api')[0]
        assert route.handler(None) == {'response': 'ok'}

    def test_route_key(self):
        """Test route identity key."""
        route = Route(method='GET', path='/users', handler=first)

        assert route.key == ('GET', '/users')


class TestNamespace:
    """Test Namespace registration handle."""

    def test_verbs_forward_to_registry(self):
        """Test each verb registers with its method."""
        registry = RouteRegistry()
        api = Namespace(registry, 'api')

        api.get('/a', first)
        api.post('/a', first)
        api.put('/a', first)
        api.patch('/a', first)
        api.delete('/a', first)

        assert [r.method for r in api.routes] == ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']

    def test_namespace_exists_without_routes(self):
        """Test creating a handle creates the namespace."""
        registry = RouteRegistry()
        Namespace(registry, 'empty')

        assert 'empty' in registry
        assert registry.get_routes('empty') == []

    def test_decorator_form(self):
        """Test verb without handler acts as a decorator."""
        registry = RouteRegistry()
        api = Namespace(registry, 'api')

        @api.post('/users', body_params={'role': 'admin'})
        def create_admin(ctx):
            return {'response': 'created', 'status': 201}

        route = api.routes[0]
        assert route.handler is create_admin
        assert route.body_params == {'role': 'admin'}
        assert create_admin(None)['status'] == 201

    def test_repr(self):
        """Test readable representation."""
        registry = RouteRegistry()
        api = Namespace(registry, 'api')
        api.get('/users', first)

        assert repr(api) == "Namespace('api', routes=1)"
