"""restforge: CRUD REST resources derived from SQLAlchemy entities."""

from restforge.api.app import Resource, create_app
from restforge.api.controller import ResourceController
from restforge.api.routes import (
    MiddlewareRegistry,
    MiddlewareRule,
    RouteRules,
    middleware,
    register_resource,
    resource_router,
)
from restforge.config import Settings
from restforge.core.types import Operation, UserContext
from restforge.errors import InvalidPayloadError, InvalidQueryError, RestForgeError
from restforge.hooks import ABORT, Abort
from restforge.query import (
    And,
    Condition,
    Not,
    Or,
    PaginationParams,
    Predicate,
    QueryBuilder,
    QueryConstraints,
    Refine,
    RelationCount,
)

__version__ = "0.1.0"

__all__ = [
    "ABORT",
    "Abort",
    "And",
    "Condition",
    "InvalidPayloadError",
    "InvalidQueryError",
    "MiddlewareRegistry",
    "MiddlewareRule",
    "Not",
    "Operation",
    "Or",
    "PaginationParams",
    "Predicate",
    "QueryBuilder",
    "QueryConstraints",
    "Refine",
    "Resource",
    "RelationCount",
    "ResourceController",
    "RestForgeError",
    "RouteRules",
    "Settings",
    "UserContext",
    "create_app",
    "middleware",
    "register_resource",
    "resource_router",
]
