"""Route registration for resource controllers.

Binds the five controller operations to conventional paths on a FastAPI
router, optionally restricted to a subset, with per-operation middleware
expressed as FastAPI dependencies:

    rules = RouteRules.from_mapping({
        "create,update": ["auth"],
        "delete": ["auth", "admin"],
        "default": [],
    })
    app.include_router(
        resource_router("/articles", ArticleController, db.get_session, middleware=rules)
    )

Middleware may be given as dependables or as names registered with the
``@middleware`` decorator.
"""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from starlette.requests import Request
from starlette.responses import Response

from restforge.api.responses import ErrorEnvelope
from restforge.core.types import ALL_OPERATIONS, Operation

# Default key in a middleware mapping, applied to operations no rule names.
DEFAULT_KEY = "default"

# (HTTP method, path suffix) for each operation.
ROUTES: dict[Operation, tuple[str, str]] = {
    Operation.INDEX: ("GET", ""),
    Operation.ONE: ("GET", "/{id}"),
    Operation.CREATE: ("POST", ""),
    Operation.UPDATE: ("PUT", "/{id}"),
    Operation.DELETE: ("DELETE", "/{id}"),
}


class MiddlewareRegistry:
    """Registry of named middleware dependencies.

    Lets route rules (including YAML ones) refer to middleware by name.

    Example:
        @middleware("auth")
        def auth(request: Request) -> UserContext:
            ...
    """

    _middleware: dict[str, Callable[..., Any]] = {}

    @classmethod
    def register(cls, name: str, dependency: Callable[..., Any]) -> None:
        """Register a dependency by name.

        Idempotent: re-registering the same name is a no-op.
        """
        if name in cls._middleware:
            return
        cls._middleware[name] = dependency

    @classmethod
    def get(cls, name: str) -> Callable[..., Any]:
        """Get a registered dependency by name.

        Raises:
            ValueError: If no middleware is registered under ``name``
        """
        if name not in cls._middleware:
            raise ValueError(
                f"Middleware '{name}' is not registered. "
                "Middleware must be registered before routes are built."
            )
        return cls._middleware[name]

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name in cls._middleware

    @classmethod
    def list_registered(cls) -> list[str]:
        return sorted(cls._middleware.keys())

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._middleware.clear()


def middleware(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to register a middleware dependency under ``name``."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        MiddlewareRegistry.register(name, fn)
        return fn

    return decorator


def _resolve_dependency(value: Any) -> Callable[..., Any]:
    if isinstance(value, str):
        return MiddlewareRegistry.get(value)
    if callable(value):
        return value
    raise TypeError(f"Middleware must be a name or a callable, got {type(value).__name__}")


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or callable(value):
        return [value]
    return list(value)


def parse_operations(names: "str | Operation | Iterable[str | Operation]") -> tuple[Operation, ...]:
    """Parse operation names; a string may combine several with commas."""
    if isinstance(names, (str, Operation)):
        names = [names]
    operations: list[Operation] = []
    for name in names:
        parts = name.split(",") if isinstance(name, str) else [name]
        for part in parts:
            if isinstance(part, str) and not part.strip():
                continue
            operation = Operation.parse(part)
            if operation not in operations:
                operations.append(operation)
    return tuple(operations)


@dataclass(frozen=True)
class MiddlewareRule:
    """Dependencies attached to one or more operations.

    Attributes:
        operations: Operations the rule applies to
        dependencies: FastAPI dependables run before the endpoint
    """

    operations: tuple[Operation, ...]
    dependencies: tuple[Callable[..., Any], ...] = ()

    @classmethod
    def parse(cls, names: Any, dependencies: Any = ()) -> "MiddlewareRule":
        """Build a rule from operation names ("create,update") and dependencies.

        Dependencies given as strings are looked up in MiddlewareRegistry.
        """
        return cls(
            operations=parse_operations(names),
            dependencies=tuple(_resolve_dependency(d) for d in _as_list(dependencies)),
        )


@dataclass
class RouteRules:
    """Ordered middleware rules plus a default for unnamed operations.

    Every rule naming an operation contributes its dependencies, in
    declaration order. An operation named by no rule gets ``default``.
    """

    rules: list[MiddlewareRule] = field(default_factory=list)
    default: tuple[Callable[..., Any], ...] = ()

    def dependencies_for(self, operation: Operation) -> list[Callable[..., Any]]:
        named = False
        dependencies: list[Callable[..., Any]] = []
        for rule in self.rules:
            if operation in rule.operations:
                named = True
                dependencies.extend(rule.dependencies)
        if not named:
            return list(self.default)
        return dependencies

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "RouteRules":
        """Build rules from ``{"create,update": [...], "default": [...]}``."""
        rules: list[MiddlewareRule] = []
        default: tuple[Callable[..., Any], ...] = ()
        for key, dependencies in mapping.items():
            if str(key).strip().lower() == DEFAULT_KEY:
                default = tuple(_resolve_dependency(d) for d in _as_list(dependencies))
            else:
                rules.append(MiddlewareRule.parse(key, dependencies))
        return cls(rules=rules, default=default)


def load_route_rules(path: Path) -> RouteRules:
    """Load middleware rules from a YAML file.

    The file holds the mapping form, optionally under a ``middleware`` key:

        middleware:
          create,update: [auth]
          delete: [auth, admin]
          default: []
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"Route rules in {path} must be a mapping")
    mapping = data.get("middleware", data)
    return RouteRules.from_mapping(mapping or {})


def _endpoint(controller: type, operation: Operation, get_session: Callable[..., Any]) -> Callable[..., Any]:
    """Build the FastAPI endpoint function for one controller operation."""
    if ROUTES[operation][1]:

        async def endpoint_with_id(
            id: str, request: Request, session: Session = Depends(get_session)
        ) -> Response:
            instance = controller(session)
            return await getattr(instance, operation.value)(request, id)

        return endpoint_with_id

    async def endpoint(request: Request, session: Session = Depends(get_session)) -> Response:
        instance = controller(session)
        return await getattr(instance, operation.value)(request)

    return endpoint


def _documented_errors(operation: Operation) -> dict[int | str, dict[str, Any]]:
    responses: dict[int | str, dict[str, Any]] = {
        400: {"model": ErrorEnvelope, "description": "Invalid query or payload"},
    }
    if ROUTES[operation][1]:
        responses[404] = {"model": ErrorEnvelope, "description": "Entity not found"}
    return responses


def register_resource(
    router: APIRouter,
    prefix: str,
    controller: type,
    get_session: Callable[..., Any],
    include: Any = None,
    middleware: RouteRules | Mapping[str, Any] | None = None,
) -> APIRouter:
    """Add the routes for ``controller`` under ``prefix`` to ``router``.

    Args:
        router: Router receiving the routes
        prefix: Resource path, e.g. "/articles"
        controller: ResourceController subclass
        get_session: Dependency yielding a SQLAlchemy session per request
        include: Operation names to expose (None exposes all five)
        middleware: RouteRules, or a mapping accepted by RouteRules.from_mapping

    Returns:
        The router, for chaining

    Raises:
        TypeError: If the controller has no model
        ValueError: If ``include`` names an unknown operation
    """
    if getattr(controller, "model", None) is None:
        raise TypeError(f"{controller.__name__} must define a 'model'")

    operations = ALL_OPERATIONS if include is None else parse_operations(include)
    if isinstance(middleware, Mapping):
        middleware = RouteRules.from_mapping(middleware)
    rules = middleware or RouteRules()

    base = "/" + prefix.strip("/")
    name = prefix.strip("/").replace("/", ".")

    for operation in ALL_OPERATIONS:
        if operation not in operations:
            continue
        method, suffix = ROUTES[operation]
        router.add_api_route(
            base + suffix,
            _endpoint(controller, operation, get_session),
            methods=[method],
            name=f"{name}.{operation.value}",
            dependencies=[Depends(d) for d in rules.dependencies_for(operation)],
            response_model=None,
            responses=_documented_errors(operation),
        )
    return router


def resource_router(
    prefix: str,
    controller: type,
    get_session: Callable[..., Any],
    include: Any = None,
    middleware: RouteRules | Mapping[str, Any] | None = None,
    tags: list[str] | None = None,
) -> APIRouter:
    """Create a new APIRouter holding the routes for one resource."""
    router = APIRouter(tags=tags or [prefix.strip("/")])
    return register_resource(router, prefix, controller, get_session, include, middleware)
