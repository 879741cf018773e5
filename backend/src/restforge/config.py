"""Application settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from restforge.persistence.config import DatabaseConfig

DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173"]

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Settings:
    """Settings for a restforge application.

    Attributes:
        database: Database connection configuration
        secret_key: Key for signing and verifying JWT access tokens
        disable_auth: Skip installing AuthMiddleware
        cors_origins: Origins allowed by the CORS middleware
        create_tables: Create tables for the resources' models on startup
    """

    database: DatabaseConfig
    secret_key: str = DEFAULT_SECRET_KEY
    disable_auth: bool = False
    cors_origins: list[str] = field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))
    create_tables: bool = True

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> Settings:
        """Create settings from environment variables.

        Reads DATABASE_URL / RESTFORGE_DB_PATH (see DatabaseConfig.from_env),
        RESTFORGE_SECRET_KEY, RESTFORGE_DISABLE_AUTH,
        RESTFORGE_CORS_ORIGINS (comma-separated) and RESTFORGE_CREATE_TABLES.
        """
        origins = os.environ.get("RESTFORGE_CORS_ORIGINS")
        if origins is None:
            cors_origins = list(DEFAULT_CORS_ORIGINS)
        else:
            cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

        return cls(
            database=DatabaseConfig.from_env(base_path),
            secret_key=os.environ.get("RESTFORGE_SECRET_KEY", DEFAULT_SECRET_KEY),
            disable_auth=_env_flag("RESTFORGE_DISABLE_AUTH"),
            cors_origins=cors_origins,
            create_tables=_env_flag("RESTFORGE_CREATE_TABLES", default=True),
        )
