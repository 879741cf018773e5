"""Database configuration and session management."""

from __future__ import annotations

import os
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


@dataclass(frozen=True)
class DatabaseConfig:
    """Where the resources' tables live.

    ``url`` is any SQLAlchemy URL. Plain ``postgresql://`` URLs are routed
    to the psycopg 3 driver.
    """

    url: str

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> DatabaseConfig:
        """DATABASE_URL wins, then RESTFORGE_DB_PATH (a SQLite file), then a
        SQLite file under ``base_path/data`` or the working directory.
        """
        if os.environ.get("DATABASE_URL"):
            return cls(os.environ["DATABASE_URL"])

        db_path = os.environ.get("RESTFORGE_DB_PATH")
        if not db_path:
            db_path = str(base_path / "data" / "restforge.db") if base_path else "restforge.db"
        return cls(f"sqlite:///{db_path}")

    @property
    def backend(self) -> str:
        return make_url(self.url).get_backend_name()

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgresql(self) -> bool:
        return self.backend == "postgresql"

    @property
    def sqlite_path(self) -> str | None:
        """Filesystem path of a SQLite database, None for in-memory or non-SQLite."""
        if not self.is_sqlite:
            return None
        database = make_url(self.url).database
        if not database or database == ":memory:":
            return None
        return database

    @property
    def sqlalchemy_url(self) -> str:
        url = make_url(self.url)
        if url.drivername == "postgresql":
            url = url.set(drivername="postgresql+psycopg")
        return url.render_as_string(hide_password=False)

class Database:
    """Engine plus session factory for one database.

    ``get_session`` is meant to be used as a FastAPI dependency: it yields
    one session per request and closes it afterwards.
    """

    def __init__(self, config: DatabaseConfig, echo: bool = False):
        self.config = config

        engine_kwargs: dict[str, Any] = {"echo": echo}
        if config.is_sqlite:
            # Sessions are opened in a worker thread and used on the event loop.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            sqlite_path = config.sqlite_path
            if sqlite_path is None:
                engine_kwargs["poolclass"] = StaticPool
            else:
                Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(config.sqlalchemy_url, **engine_kwargs)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)

    def get_session(self) -> Iterator[Session]:
        with self.session_factory() as session:
            yield session

    def create_all(self, metadata: MetaData) -> None:
        """Create tables for ``metadata`` if they don't exist."""
        metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
