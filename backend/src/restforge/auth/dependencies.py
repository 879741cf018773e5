"""Route middleware built on the request's UserContext.

Registered under these names for route rules:

    "auth"     any authenticated caller
    "manager"  manager role or above
    "admin"    admin role
"""

from collections.abc import Callable

from fastapi import HTTPException, Request

from restforge.api.routes import MiddlewareRegistry
from restforge.auth.middleware import get_user_context
from restforge.core.types import UserContext

# A role satisfies any requirement ranked at or below it
ROLE_HIERARCHY = {
    "readonly": 1,
    "user": 2,
    "manager": 3,
    "admin": 4,
}


def has_role(user: UserContext, required: str) -> bool:
    """True if one of the user's roles is ``required`` or outranks it."""
    needed = ROLE_HIERARCHY.get(required)
    for role in user.roles:
        if role == required:
            return True
        if needed is not None and ROLE_HIERARCHY.get(role, 0) >= needed:
            return True
    return False


def require_authenticated(request: Request) -> UserContext:
    """Reject anonymous callers with 401."""
    user = get_user_context(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


def require_role(*roles: str) -> Callable[[Request], UserContext]:
    """Build a dependency admitting callers holding any of ``roles``.

    Example:
        RouteRules.from_mapping({"delete": [require_role("manager")]})
    """
    if not roles:
        raise ValueError("require_role needs at least one role")

    def dependency(request: Request) -> UserContext:
        user = require_authenticated(request)
        if any(has_role(user, role) for role in roles):
            return user
        raise HTTPException(status_code=403, detail=f"Requires role: {' or '.join(roles)}")

    dependency.__name__ = f"require_role({', '.join(roles)})"
    return dependency


def register_builtin_middleware() -> None:
    MiddlewareRegistry.register("auth", require_authenticated)
    MiddlewareRegistry.register("manager", require_role("manager"))
    MiddlewareRegistry.register("admin", require_role("admin"))
