"""Query construction: pagination params, predicates, constraints and the builder."""

from restforge.query.builder import QueryBuilder, prepare_query, prepare_query_with_count
from restforge.query.constraints import QueryConstraints, RelationCount
from restforge.query.params import UNSET, PaginationParams
from restforge.query.predicates import (
    OPERATORS,
    And,
    Condition,
    Not,
    Or,
    Predicate,
    Refine,
    as_predicate,
)

__all__ = [
    "OPERATORS",
    "UNSET",
    "And",
    "Condition",
    "Not",
    "Or",
    "PaginationParams",
    "Predicate",
    "QueryBuilder",
    "QueryConstraints",
    "Refine",
    "RelationCount",
    "as_predicate",
    "prepare_query",
    "prepare_query_with_count",
]
