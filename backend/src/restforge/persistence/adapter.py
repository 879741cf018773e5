"""EntityStore Protocol: the persistence capability a resource controller uses."""

from typing import Any, Protocol, runtime_checkable

from sqlalchemy import Select

from restforge.query.constraints import QueryConstraints
from restforge.query.params import PaginationParams


@runtime_checkable
class EntityStore(Protocol):
    """Interface a store must implement to back a ResourceController.

    Matches the public API of SQLAlchemyStore. One store is created per
    request and bound to that request's session.
    """

    model: Any
    primary_key: str

    def query(
        self,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> Select: ...

    def query_with_count(
        self,
        constraints: QueryConstraints | None = None,
        params: PaginationParams | None = None,
    ) -> tuple[Select, int]: ...

    def all(self, stmt: Select) -> list[Any]: ...

    def find(self, id: Any, stmt: Select | None = None) -> Any | None: ...

    def create(self, payload: dict[str, Any]) -> Any: ...

    def save(self, entity: Any, payload: dict[str, Any]) -> Any: ...

    def delete(self, entity: Any) -> None: ...

    def identifier(self, entity: Any) -> Any: ...

    def to_dict(self, entity: Any) -> dict[str, Any]: ...
