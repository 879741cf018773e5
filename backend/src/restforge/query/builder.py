"""Build filtered, sorted and paginated SQLAlchemy queries for a mapped model.

The steps run in a fixed order: eager loads, static filters, the dynamic
predicate, relation-count conditions, then (optionally) the total count,
then skip/limit and sort. The total count is always taken before
pagination so it reflects every row matching the constraints.
"""

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, func, inspect, select
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import Session, aliased, selectinload
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.util import ClauseAdapter

from restforge.errors import InvalidQueryError
from restforge.query.constraints import QueryConstraints, RelationCount
from restforge.query.params import PaginationParams
from restforge.query.predicates import column_for

logger = logging.getLogger(__name__)


class QueryBuilder:
    """Assembles a read query for one mapped model.

    Example:
        builder = QueryBuilder(Article)
        constraints = QueryConstraints(
            relations=["author"],
            filters={"status": "published"},
            relation_counts={"comments": [Condition("approved", "eq", True), ">=", 2]},
        )
        stmt, total = builder.build_with_count(session, constraints, params)
        articles = session.scalars(stmt).all()
    """

    def __init__(self, model: Any):
        try:
            self.mapper = inspect(model)
        except NoInspectionAvailable:
            raise InvalidQueryError(f"{model!r} is not a mapped class")
        self.model = self.mapper.class_

    def build(
        self,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> Select:
        """Build the query. Pagination and sort apply only when params is given."""
        stmt = self.filtered(constraints)
        if params is None:
            return stmt
        return self.paginate(stmt, params)

    def build_with_count(
        self,
        session: Session,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> tuple[Select, int]:
        """Build the query and count the rows matching it before pagination."""
        stmt = self.filtered(constraints)
        total = self.count(session, stmt)
        if params is not None:
            stmt = self.paginate(stmt, params)
        return stmt, total

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def filtered(self, constraints: QueryConstraints | None = None) -> Select:
        """Apply eager loads, filters, the predicate and relation counts."""
        constraints = constraints or QueryConstraints()
        stmt = select(self.model)

        if constraints.relations:
            stmt = stmt.options(*(self._load_option(path) for path in constraints.relations))

        if constraints.filters:
            stmt = stmt.where(
                *(column_for(self.model, name) == value
                  for name, value in constraints.filters.items())
            )

        predicate = constraints.resolved_predicate()
        if predicate is not None:
            stmt = stmt.where(predicate.to_clause(self.model))

        for name, entry in constraints.resolved_relation_counts():
            stmt = stmt.where(self._relation_count_clause(name, entry))

        return stmt

    def count(self, session: Session, stmt: Select) -> int:
        """Count rows returned by ``stmt``, ignoring its ordering."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        return session.scalar(count_stmt) or 0

    def paginate(self, stmt: Select, params: PaginationParams) -> Select:
        """Apply skip, limit and sort. Non-positive skip/limit are ignored."""
        if params.offset is not None:
            stmt = stmt.offset(params.offset)
        if params.take is not None:
            stmt = stmt.limit(params.take)
        if params.has_sort:
            column = column_for(self.model, params.sort)
            stmt = stmt.order_by(column.desc() if params.descending else column.asc())
        return stmt

    # ------------------------------------------------------------------
    # Relations
    # ------------------------------------------------------------------

    def _relationship(self, model: Any, name: str) -> Any:
        mapper = inspect(model)
        if name not in mapper.relationships:
            raise InvalidQueryError(
                f"Unknown relation '{name}' on {mapper.class_.__name__}"
            )
        return getattr(mapper.class_, name)

    def _load_option(self, path: str) -> Any:
        """selectinload option for a relation path such as "author.profile"."""
        current = self.model
        option = None
        for name in path.split("."):
            attr = self._relationship(current, name)
            option = selectinload(attr) if option is None else option.selectinload(attr)
            current = attr.property.mapper.class_
        return option

    def _relation_count_clause(self, name: str, entry: RelationCount) -> ColumnElement[bool]:
        """``(SELECT count(*) FROM related WHERE ...) <op> threshold``.

        A relation back to the model's own table is counted over an alias,
        otherwise correlation would strip the related table from the
        subquery and the join would compare each row with itself.
        """
        prop = self._relationship(self.model, name).property
        target = prop.mapper.class_
        primaryjoin = prop.primaryjoin
        secondaryjoin = prop.secondaryjoin

        if prop.mapper.local_table is self.mapper.local_table:
            target = aliased(target)
            related = inspect(target).selectable
            if prop.secondary is None:
                # Only the remote side of the join belongs to the related rows
                primaryjoin = ClauseAdapter(
                    related, include_fn=lambda col: col in prop.remote_side
                ).traverse(primaryjoin)
            else:
                secondaryjoin = ClauseAdapter(related).traverse(secondaryjoin)

        subquery = select(func.count()).select_from(target).where(primaryjoin)
        if secondaryjoin is not None:
            subquery = subquery.where(secondaryjoin)
        if entry.predicate is not None:
            subquery = subquery.where(entry.predicate.to_clause(target))

        counted = subquery.correlate(self.model).scalar_subquery()
        return entry.comparator(counted, entry.count)


def prepare_query(
    model: Any,
    relations: list[str] | None = None,
    filters: Mapping[str, Any] | None = None,
    predicate: Any = None,
    relation_counts: Mapping[str, Any] | None = None,
    params: PaginationParams | None = None,
) -> Select:
    """Build a query for ``model``; pagination and sort apply when params is given."""
    constraints = QueryConstraints(
        relations=list(relations or []),
        filters=dict(filters or {}),
        predicate=predicate,
        relation_counts=dict(relation_counts or {}),
    )
    return QueryBuilder(model).build(constraints, params)


def prepare_query_with_count(
    session: Session,
    model: Any,
    relations: list[str] | None = None,
    filters: Mapping[str, Any] | None = None,
    predicate: Any = None,
    relation_counts: Mapping[str, Any] | None = None,
    params: PaginationParams | None = None,
) -> tuple[Select, int]:
    """Like prepare_query, also returning the total count before pagination."""
    constraints = QueryConstraints(
        relations=list(relations or []),
        filters=dict(filters or {}),
        predicate=predicate,
        relation_counts=dict(relation_counts or {}),
    )
    return QueryBuilder(model).build_with_count(session, constraints, params)
