"""Request middleware resolving the caller from a bearer token."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from restforge.auth.tokens import TokenError, TokenService
from restforge.core.types import UserContext

logger = logging.getLogger(__name__)


def bearer_token(request: Request) -> str | None:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


class AuthMiddleware(BaseHTTPMiddleware):
    """Put the caller's UserContext, or None, on ``request.state.user_context``.

    Requests are never rejected here. Per-operation route middleware such
    as ``require_authenticated`` decides what anonymous callers may do.
    """

    def __init__(self, app, token_service: TokenService):
        super().__init__(app)
        self.token_service = token_service

    async def dispatch(self, request: Request, call_next) -> Response:
        request.state.user_context = None

        token = bearer_token(request)
        if token:
            try:
                request.state.user_context = self.token_service.verify(token)
            except TokenError as e:
                logger.debug("Ignoring bearer token: %s", e)

        return await call_next(request)


def get_user_context(request: Request) -> UserContext | None:
    return getattr(request.state, "user_context", None)
