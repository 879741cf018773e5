"""Per-operation query constraints supplied by a resource controller."""

import logging
import operator as op
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from restforge.errors import InvalidQueryError
from restforge.query.predicates import OPERATOR_ALIASES, Predicate, as_predicate

logger = logging.getLogger(__name__)

# Comparisons allowed between a related-row count and its threshold.
COUNT_COMPARATORS: dict[str, Callable[[Any, Any], Any]] = {
    "eq": op.eq,
    "neq": op.ne,
    "gt": op.gt,
    "gte": op.ge,
    "lt": op.lt,
    "lte": op.le,
}


@dataclass(frozen=True)
class RelationCount:
    """Require the number of matching related rows to satisfy a comparison.

    Attributes:
        predicate: Condition on the related rows (None counts all of them)
        operator: Comparison between the count and ``count`` (default ">=")
        count: Threshold (default 1)
    """

    predicate: Predicate | None = None
    operator: str = ">="
    count: int = 1

    def __post_init__(self) -> None:
        name = OPERATOR_ALIASES.get(self.operator, self.operator)
        if name not in COUNT_COMPARATORS:
            raise InvalidQueryError(
                f"Unsupported relation count operator '{self.operator}'"
            )
        object.__setattr__(self, "operator", name)

    @property
    def comparator(self) -> Callable[[Any, Any], Any]:
        return COUNT_COMPARATORS[self.operator]

    @classmethod
    def from_value(cls, value: Any) -> "RelationCount | None":
        """Build from a RelationCount or a ``(predicate, operator, count)`` sequence.

        The sequence may hold one, two or three items; missing items take
        their defaults. None, empty and non-sequence values yield None.
        """
        if isinstance(value, RelationCount):
            return value
        if not isinstance(value, (list, tuple)) or len(value) == 0:
            return None

        kwargs: dict[str, Any] = {"predicate": as_predicate(value[0])}
        if len(value) >= 2:
            kwargs["operator"] = value[1]
        if len(value) >= 3:
            try:
                kwargs["count"] = int(value[2])
            except (TypeError, ValueError):
                raise InvalidQueryError(
                    f"Relation count threshold must be an integer, got {value[2]!r}"
                )
        return cls(**kwargs)


@dataclass
class QueryConstraints:
    """Relations, filters and predicates scoping one operation's query.

    Attributes:
        relations: Relation names to eager-load, in order (dotted for nesting)
        filters: Field -> value equality filters, ANDed
        predicate: One dynamic predicate ANDed in as a compound clause
        relation_counts: Relation name -> RelationCount or tuple form
    """

    relations: list[str] = field(default_factory=list)
    filters: dict[str, Any] = field(default_factory=dict)
    predicate: Any = None
    relation_counts: Mapping[str, Any] = field(default_factory=dict)

    def resolved_predicate(self) -> Predicate | None:
        return as_predicate(self.predicate)

    def resolved_relation_counts(self) -> list[tuple[str, RelationCount]]:
        """Relation-count entries in declared order, skipping empty ones."""
        resolved = []
        for name, value in (self.relation_counts or {}).items():
            entry = RelationCount.from_value(value)
            if entry is None:
                logger.debug("Skipping empty relation count entry for '%s'", name)
                continue
            resolved.append((name, entry))
        return resolved
