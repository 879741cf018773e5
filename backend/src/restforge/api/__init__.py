"""HTTP layer - controllers, route registration and the app factory."""

from restforge.api.app import Resource, create_app
from restforge.api.controller import ResourceController
from restforge.api.responses import (
    ErrorEnvelope,
    error_response,
    not_found_response,
    override_response,
    success_response,
)
from restforge.api.routes import (
    MiddlewareRegistry,
    MiddlewareRule,
    RouteRules,
    load_route_rules,
    middleware,
    parse_operations,
    register_resource,
    resource_router,
)

__all__ = [
    "ErrorEnvelope",
    "MiddlewareRegistry",
    "MiddlewareRule",
    "Resource",
    "ResourceController",
    "RouteRules",
    "create_app",
    "error_response",
    "load_route_rules",
    "middleware",
    "not_found_response",
    "override_response",
    "parse_operations",
    "register_resource",
    "resource_router",
    "success_response",
]
