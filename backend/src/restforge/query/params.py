"""Pagination and sort parameters read from a request's query string."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from starlette.requests import Request

from restforge.errors import InvalidQueryError

logger = logging.getLogger(__name__)

# Sentinel for skip/limit meaning "not supplied".
UNSET = -1

SORT_ORDERS = ("asc", "desc")


def _parse_int(name: str, raw: Any) -> int:
    if raw is None or raw == "":
        return UNSET
    try:
        return int(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-integer %s parameter: %r", name, raw)
        return UNSET


@dataclass(frozen=True)
class PaginationParams:
    """Request-derived pagination and sort settings.

    Attributes:
        skip: Rows to skip; applied only when strictly positive
        limit: Maximum rows to return; applied only when strictly positive
        sort: Field to sort on; empty means no sort
        order: "asc" or "desc"; empty means no sort
    """

    skip: int = UNSET
    limit: int = UNSET
    sort: str = ""
    order: str = "asc"

    def __post_init__(self) -> None:
        if self.order and self.order not in SORT_ORDERS:
            raise InvalidQueryError(
                f"Invalid order '{self.order}'. Expected one of: {', '.join(SORT_ORDERS)}"
            )

    @classmethod
    def from_query(cls, query: Mapping[str, Any]) -> "PaginationParams":
        """Build parameters from a query-string mapping.

        Missing or non-integer skip/limit values become UNSET. ``order``
        defaults to "asc" and is matched case-insensitively.
        """
        order = query.get("order")
        return cls(
            skip=_parse_int("skip", query.get("skip")),
            limit=_parse_int("limit", query.get("limit")),
            sort=(query.get("sort") or "").strip(),
            order="asc" if order is None else str(order).strip().lower(),
        )

    @classmethod
    def from_request(cls, request: Request) -> "PaginationParams":
        return cls.from_query(request.query_params)

    @property
    def offset(self) -> int | None:
        """Skip value to apply, or None when unset."""
        return self.skip if self.skip > 0 else None

    @property
    def take(self) -> int | None:
        """Limit value to apply, or None when unset."""
        return self.limit if self.limit > 0 else None

    @property
    def has_sort(self) -> bool:
        return bool(self.sort) and bool(self.order)

    @property
    def descending(self) -> bool:
        return self.order == "desc"
