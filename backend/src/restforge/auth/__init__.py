"""Bearer-token authentication and the auth route middleware."""

from restforge.auth.dependencies import (
    ROLE_HIERARCHY,
    has_role,
    register_builtin_middleware,
    require_authenticated,
    require_role,
)
from restforge.auth.middleware import AuthMiddleware, bearer_token, get_user_context
from restforge.auth.tokens import ExpiredTokenError, TokenError, TokenService

__all__ = [
    "ROLE_HIERARCHY",
    "AuthMiddleware",
    "ExpiredTokenError",
    "TokenError",
    "TokenService",
    "bearer_token",
    "get_user_context",
    "has_role",
    "register_builtin_middleware",
    "require_authenticated",
    "require_role",
]
