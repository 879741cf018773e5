"""FastAPI application factory."""

import logging
from collections.abc import Mapping, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from restforge.api.responses import error_response
from restforge.api.routes import RouteRules, register_resource
from restforge.auth import AuthMiddleware, TokenService, register_builtin_middleware
from restforge.config import Settings
from restforge.errors import RestForgeError
from restforge.persistence.config import Database

logger = logging.getLogger(__name__)


@dataclass
class Resource:
    """One resource exposed by the application.

    Attributes:
        prefix: Path prefix, e.g. "/articles"
        controller: ResourceController subclass serving the resource
        include: Operation names to expose (None exposes all five)
        middleware: RouteRules or the mapping form accepted by RouteRules.from_mapping
    """

    prefix: str
    controller: type
    include: Any = None
    middleware: RouteRules | Mapping[str, Any] | None = None


def create_app(
    resources: Sequence[Resource],
    settings: Settings | None = None,
    database: Database | None = None,
    title: str = "restforge API",
) -> FastAPI:
    """Build a FastAPI app serving ``resources``.

    Args:
        resources: Resources to register, in order
        settings: Settings (default: Settings.from_env())
        database: Database to use (default: built from settings.database)
        title: OpenAPI title

    Returns:
        The configured application. The database is available as
        ``app.state.database``.
    """
    settings = settings or Settings.from_env()
    database = database or Database(settings.database)

    # Named middleware must exist before route rules refer to it
    register_builtin_middleware()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create tables on startup, dispose the engine on shutdown."""
        if settings.create_tables:
            seen = set()
            for resource in resources:
                metadata = resource.controller.model.metadata
                if id(metadata) not in seen:
                    seen.add(id(metadata))
                    database.create_all(metadata)
        logger.info("Serving %d resource(s)", len(resources))

        yield

        database.dispose()

    app = FastAPI(title=title, lifespan=lifespan)
    app.state.database = database
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Result-Count", "X-Total-Count"],
    )

    if settings.disable_auth:
        logger.warning("Authentication middleware disabled")
    else:
        app.add_middleware(AuthMiddleware, token_service=TokenService(settings.secret_key))

    @app.exception_handler(RestForgeError)
    async def restforge_error_handler(request: Request, exc: RestForgeError):
        return error_response({"reason": str(exc)}, 400)

    for resource in resources:
        register_resource(
            app.router,
            resource.prefix,
            resource.controller,
            database.get_session,
            include=resource.include,
            middleware=resource.middleware,
        )

    return app
