"""Composable query predicates.

A predicate is a small tree of nodes that compiles to a SQLAlchemy boolean
clause against a mapped model:

- Condition: ``field <operator> value``
- And / Or / Not: boolean combinators (also available as ``&``, ``|``, ``~``)
- Refine: an injected strategy, any callable ``fn(model) -> clause``

Usage:
    from restforge.query import Condition

    published = Condition("status", "eq", "published")
    recent = Condition("year", "gte", 2020)
    predicate = published & (recent | Condition("pinned", "eq", True))
    stmt = select(Article).where(predicate.to_clause(Article))

Mappings in the ``{"operator": "and", "conditions": [...]}`` form are
accepted through ``Predicate.from_dict``.
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from sqlalchemy import and_, false, inspect, not_, or_, true
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.sql.elements import ColumnElement

from restforge.errors import InvalidQueryError

logger = logging.getLogger(__name__)

# Symbolic spellings accepted wherever an operator name is.
OPERATOR_ALIASES = {
    "=": "eq",
    "==": "eq",
    "!=": "neq",
    "<>": "neq",
    ">": "gt",
    ">=": "gte",
    "<": "lt",
    "<=": "lte",
}

OPERATORS: dict[str, Callable[[Any, Any], ColumnElement[bool]]] = {
    "eq": lambda col, value: col == value,
    "neq": lambda col, value: col != value,
    "gt": lambda col, value: col > value,
    "gte": lambda col, value: col >= value,
    "lt": lambda col, value: col < value,
    "lte": lambda col, value: col <= value,
    "in": lambda col, value: col.in_(list(value)),
    "notIn": lambda col, value: col.not_in(list(value)),
    "contains": lambda col, value: col.contains(value, autoescape=True),
    "startsWith": lambda col, value: col.startswith(value, autoescape=True),
    "isNull": lambda col, value: col.is_(None),
    "isNotNull": lambda col, value: col.is_not(None),
    "between": lambda col, value: col.between(value[0], value[1]),
}

# Operators whose value must be a list.
LIST_OPERATORS = {"in", "notIn", "between"}


def normalize_operator(operator: str) -> str:
    """Resolve an operator alias to its canonical name.

    Raises:
        InvalidQueryError: If the operator is not supported
    """
    name = OPERATOR_ALIASES.get(operator, operator)
    if name not in OPERATORS:
        raise InvalidQueryError(
            f"Unsupported operator '{operator}'. "
            f"Allowed: {', '.join(sorted(OPERATORS))}"
        )
    return name


def column_for(model: Any, name: str) -> Any:
    """Return the mapped column attribute ``name`` of ``model``.

    Raises:
        InvalidQueryError: If ``model`` has no such column
    """
    try:
        mapper = inspect(model).mapper
    except NoInspectionAvailable:
        raise InvalidQueryError(f"{model!r} is not a mapped class")
    if name not in mapper.column_attrs:
        raise InvalidQueryError(f"Unknown field '{name}' on {mapper.class_.__name__}")
    # An aliased class resolves to the alias's column
    return getattr(model, name)


class Predicate:
    """Base class for predicate nodes."""

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        raise NotImplementedError

    def __and__(self, other: "Predicate") -> "Predicate":
        return And(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return Or(self, other)

    def __invert__(self) -> "Predicate":
        return Not(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Predicate":
        """Create a predicate tree from its mapping form.

        Accepted shapes:
            {"field": "name", "operator": "eq", "value": "x"}
            {"operator": "and" | "or", "conditions": [...]}
            {"conditions": [...]}            # implicit and
            {"not": {...}}
        """
        if "not" in data:
            return Not(cls.from_dict(data["not"]))

        if "conditions" in data:
            children = [cls.from_dict(c) for c in data["conditions"]]
            op = str(data.get("operator", "and")).lower()
            if op == "and":
                return And(*children)
            if op == "or":
                return Or(*children)
            raise InvalidQueryError(f"Unknown logical operator '{op}'")

        if "field" not in data:
            raise InvalidQueryError(f"Cannot build a predicate from {dict(data)!r}")

        return Condition(
            field=data["field"],
            operator=data.get("operator", "eq"),
            value=data.get("value"),
        )


@dataclass(frozen=True)
class Condition(Predicate):
    """Compare one column against a value."""

    field: str
    operator: str = "eq"
    value: Any = None

    def __post_init__(self) -> None:
        operator = normalize_operator(self.operator)
        object.__setattr__(self, "operator", operator)
        if operator in LIST_OPERATORS and not isinstance(self.value, (list, tuple, set)):
            raise InvalidQueryError(f"Operator '{operator}' expects a list value")
        if operator == "between" and (
            not isinstance(self.value, (list, tuple)) or len(self.value) != 2
        ):
            raise InvalidQueryError("Operator 'between' expects exactly two values")

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        return OPERATORS[self.operator](column_for(model, self.field), self.value)


class And(Predicate):
    """All children must hold. An empty And is always true."""

    def __init__(self, *predicates: Predicate):
        self.predicates = tuple(predicates)

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        if not self.predicates:
            return true()
        return and_(*(p.to_clause(model) for p in self.predicates))

    def __repr__(self) -> str:
        return f"And{self.predicates!r}"


class Or(Predicate):
    """At least one child must hold. An empty Or is always false."""

    def __init__(self, *predicates: Predicate):
        self.predicates = tuple(predicates)

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        if not self.predicates:
            return false()
        return or_(*(p.to_clause(model) for p in self.predicates))

    def __repr__(self) -> str:
        return f"Or{self.predicates!r}"


class Not(Predicate):
    def __init__(self, predicate: Predicate):
        self.predicate = predicate

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        return not_(self.predicate.to_clause(model))

    def __repr__(self) -> str:
        return f"Not({self.predicate!r})"


class Refine(Predicate):
    """Wrap a callable that builds the clause itself.

    The callable receives the mapped class and returns a SQLAlchemy
    boolean expression, e.g. ``Refine(lambda m: m.title.ilike("%sql%"))``.
    """

    def __init__(self, fn: Callable[[Any], ColumnElement[bool]]):
        self.fn = fn

    def to_clause(self, model: Any) -> ColumnElement[bool]:
        return self.fn(model)

    def __repr__(self) -> str:
        return f"Refine({self.fn!r})"


def as_predicate(value: Any) -> Predicate | None:
    """Coerce a user-supplied dynamic predicate into a Predicate.

    Predicates pass through, mappings go through ``Predicate.from_dict``
    and callables are wrapped in ``Refine``. Anything else is ignored.
    """
    if value is None:
        return None
    if isinstance(value, Predicate):
        return value
    if isinstance(value, Mapping):
        return Predicate.from_dict(value)
    if callable(value):
        return Refine(value)
    logger.warning("Ignoring dynamic predicate of type %s", type(value).__name__)
    return None
