"""Signed bearer tokens carrying a UserContext."""

import time
from typing import Any

import jwt

from restforge.core.types import UserContext


class TokenError(Exception):
    """A bearer token could not be verified."""


class ExpiredTokenError(TokenError):
    pass


class TokenService:
    """Issue and verify access tokens for a UserContext.

    Claims: ``sub`` (user id), ``tid`` (tenant, optional), ``roles``,
    ``iat`` and ``exp``.
    """

    default_ttl = 15 * 60

    def __init__(self, secret_key: str, algorithm: str = "HS256", ttl: int | None = None):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = self.default_ttl if ttl is None else ttl

    def issue(self, user: UserContext, ttl: int | None = None) -> str:
        """Sign a token for ``user``, valid for ``ttl`` seconds."""
        if not user.user_id:
            raise ValueError("Cannot issue a token without a user_id")

        issued_at = int(time.time())
        claims: dict[str, Any] = {
            "sub": str(user.user_id),
            "roles": list(user.roles),
            "iat": issued_at,
            "exp": issued_at + (self.ttl if ttl is None else ttl),
        }
        if user.tenant_id:
            claims["tid"] = user.tenant_id
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> UserContext:
        """Decode ``token`` back into the caller's UserContext.

        Raises:
            ExpiredTokenError: If the token has expired
            TokenError: If the token is malformed or badly signed
        """
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise ExpiredTokenError("Token has expired")
        except jwt.PyJWTError as e:
            raise TokenError(f"Invalid token: {e}")

        roles = claims.get("roles") or []
        if isinstance(roles, str):
            roles = [roles]
        return UserContext(user_id=claims["sub"], tenant_id=claims.get("tid"), roles=list(roles))
