"""Persistence layer - entity stores and database configuration."""

from restforge.persistence.adapter import EntityStore
from restforge.persistence.config import Database, DatabaseConfig
from restforge.persistence.serialize import is_mapped_instance, to_dict
from restforge.persistence.store import SQLAlchemyStore

__all__ = [
    "Database",
    "DatabaseConfig",
    "EntityStore",
    "SQLAlchemyStore",
    "is_mapped_instance",
    "to_dict",
]
