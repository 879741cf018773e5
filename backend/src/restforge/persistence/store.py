"""SQLAlchemy ORM implementation of the EntityStore protocol."""

import logging
from collections.abc import Iterable
from typing import Any

from sqlalchemy import Select
from sqlalchemy.orm import Session

from restforge.persistence.serialize import to_dict
from restforge.query.builder import QueryBuilder
from restforge.query.constraints import QueryConstraints
from restforge.query.params import PaginationParams

logger = logging.getLogger(__name__)


class SQLAlchemyStore:
    """Store bound to one session and one mapped model.

    Every mutation commits immediately. Payload keys that are not mapped
    columns, or that are listed in ``guarded``, are dropped before assignment.
    """

    def __init__(self, session: Session, model: Any, guarded: Iterable[str] = ()):
        self.session = session
        self.builder = QueryBuilder(model)
        self.model = self.builder.model
        self.mapper = self.builder.mapper
        self.guarded = set(guarded)

        pk_columns = self.mapper.primary_key
        if len(pk_columns) != 1:
            raise ValueError(
                f"{self.model.__name__} must have exactly one primary key column"
            )
        self._pk_column = pk_columns[0]
        self.primary_key = self.mapper.get_property_by_column(self._pk_column).key

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def query(
        self,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> Select:
        return self.builder.build(constraints, params)

    def query_with_count(
        self,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> tuple[Select, int]:
        return self.builder.build_with_count(self.session, constraints, params)

    def all(self, stmt: Select) -> list[Any]:
        return list(self.session.scalars(stmt).all())

    def find(self, id: Any, stmt: Select | None = None) -> Any | None:
        """Find one entity by identifier within ``stmt`` (defaults to all rows)."""
        key = self.coerce_id(id)
        if key is None:
            return None
        if stmt is None:
            stmt = self.query()
        pk_attr = getattr(self.model, self.primary_key)
        return self.session.scalars(stmt.where(pk_attr == key).limit(1)).first()

    def coerce_id(self, id: Any) -> Any | None:
        """Convert a path identifier to the primary key's Python type.

        Returns None when the value cannot be converted, which callers
        treat as "no such entity".
        """
        try:
            python_type = self._pk_column.type.python_type
        except NotImplementedError:
            return id
        if isinstance(id, python_type):
            return id
        try:
            return python_type(id)
        except (TypeError, ValueError):
            logger.debug("Identifier %r is not a valid %s", id, python_type.__name__)
            return None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def fillable(self, payload: dict[str, Any], include_primary_key: bool = True) -> dict[str, Any]:
        """Subset of ``payload`` that may be assigned to the model."""
        allowed = {}
        for key, value in payload.items():
            if key not in self.mapper.column_attrs or key in self.guarded:
                logger.debug("Dropping non-fillable field '%s' for %s", key, self.model.__name__)
                continue
            if key == self.primary_key and not include_primary_key:
                continue
            allowed[key] = value
        return allowed

    def create(self, payload: dict[str, Any]) -> Any:
        entity = self.model(**self.fillable(payload))
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def save(self, entity: Any, payload: dict[str, Any]) -> Any:
        """Merge ``payload`` into ``entity`` and persist it. The key never changes."""
        for key, value in self.fillable(payload, include_primary_key=False).items():
            setattr(entity, key, value)
        self.session.commit()
        return entity

    def delete(self, entity: Any) -> None:
        self.session.delete(entity)
        self.session.commit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def identifier(self, entity: Any) -> Any:
        return getattr(entity, self.primary_key)

    def to_dict(self, entity: Any) -> dict[str, Any]:
        return to_dict(entity)
