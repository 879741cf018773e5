"""Resource lifecycle controller.

A ResourceController subclass turns one mapped model into five operations:

- index:  GET    /prefix        list with pagination, sort, counts
- one:    GET    /prefix/{id}   a single entity
- create: POST   /prefix
- update: PUT    /prefix/{id}
- delete: DELETE /prefix/{id}

Each operation runs: resolve constraints -> query -> before hook ->
mutate/read -> after hook -> envelope. Subclasses narrow the queries by
overriding the ``get_*`` resolvers and shape behaviour by overriding the
hooks. Example:

    class ArticleController(ResourceController):
        model = Article
        count_metadata = True

        def get_relations(self, operation):
            return ["author"] if operation is Operation.ONE else []

        def get_filters(self, operation, request):
            return {"status": "published"}

        async def before_delete(self, entity, request):
            return not entity.locked

A controller instance lives for one request only.
"""

import logging
from typing import Any, ClassVar

from sqlalchemy.orm import Session
from starlette.requests import Request
from starlette.responses import Response

from restforge.api.responses import (
    not_found_response,
    override_response,
    success_response,
)
from restforge.core.types import Operation
from restforge.errors import InvalidPayloadError
from restforge.hooks.types import ACTION_AVOIDED, Abort, has_override, payload_or_abort
from restforge.persistence.adapter import EntityStore
from restforge.persistence.serialize import is_mapped_instance
from restforge.persistence.store import SQLAlchemyStore
from restforge.query.constraints import QueryConstraints
from restforge.query.params import PaginationParams

logger = logging.getLogger(__name__)


class ResourceController:
    """Base class for REST resources backed by a SQLAlchemy model.

    Class attributes:
        model: The mapped class served by this resource (required)
        guarded: Column names never assigned from a request payload
        count_metadata: Wrap list data as {result_count, total_count, data}
        count_headers: Send X-Result-Count / X-Total-Count on list responses
        create_status / update_status / delete_status: success status codes
    """

    model: ClassVar[Any] = None
    guarded: ClassVar[tuple[str, ...]] = ()
    count_metadata: ClassVar[bool] = False
    count_headers: ClassVar[bool] = True
    create_status: ClassVar[int] = 201
    update_status: ClassVar[int] = 204
    delete_status: ClassVar[int] = 202

    def __init__(self, session: Session):
        if self.model is None:
            raise TypeError(f"{type(self).__name__} must define a 'model'")
        self.session = session
        self.store = self.create_store(session)

    def create_store(self, session: Session) -> EntityStore:
        return SQLAlchemyStore(session, self.model, guarded=self.guarded)

    # ------------------------------------------------------------------
    # Constraint resolvers (override per resource)
    # ------------------------------------------------------------------

    def get_relations(self, operation: Operation) -> list[str]:
        return []

    def get_filters(self, operation: Operation, request: Request) -> dict[str, Any]:
        return {}

    def get_predicate(self, operation: Operation, request: Request) -> Any:
        return None

    def get_relation_counts(self, operation: Operation, request: Request) -> dict[str, Any]:
        return {}

    def resolve_constraints(
        self,
        operation: Operation,
        request: Request,
        with_relations: bool = True,
    ) -> QueryConstraints:
        """Collect the resolvers' output into one bundle for ``operation``."""
        return QueryConstraints(
            relations=list(self.get_relations(operation)) if with_relations else [],
            filters=dict(self.get_filters(operation, request)),
            predicate=self.get_predicate(operation, request),
            relation_counts=dict(self.get_relation_counts(operation, request)),
        )

    # ------------------------------------------------------------------
    # Hooks (override per resource)
    # ------------------------------------------------------------------

    async def after_read(self, item: Any, request: Request) -> Any:
        """Transform each entity returned by index and one."""
        return item

    async def before_create(self, payload: dict[str, Any], request: Request) -> dict[str, Any] | Abort:
        return payload

    async def after_create(self, entity: Any, request: Request) -> Any:
        return None

    async def before_update(
        self, payload: dict[str, Any], entity: Any, request: Request
    ) -> dict[str, Any] | Abort:
        return payload

    async def after_update(self, entity: Any, request: Request) -> Any:
        return None

    async def before_delete(self, entity: Any, request: Request) -> bool | Abort:
        return True

    async def after_delete(self, entity: Any, request: Request) -> Any:
        return None

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def index(self, request: Request) -> Response:
        """List entities honouring skip, limit, sort and order."""
        params = PaginationParams.from_request(request)
        constraints = self.resolve_constraints(Operation.INDEX, request)

        total = None
        if self.count_metadata or self.count_headers:
            stmt, total = self.store.query_with_count(constraints, params)
        else:
            stmt = self.store.query(constraints, params)

        items = []
        for entity in self.store.all(stmt):
            items.append(self.serialize(await self.after_read(entity, request)))

        headers = {}
        if self.count_headers:
            headers["X-Result-Count"] = str(len(items))
            headers["X-Total-Count"] = str(total)

        if self.count_metadata:
            data: Any = {
                "result_count": len(items),
                "total_count": total,
                "data": items,
            }
        else:
            data = items

        return success_response(data, headers=headers)

    async def one(self, request: Request, id: Any) -> Response:
        constraints = self.resolve_constraints(Operation.ONE, request)
        entity = self.store.find(id, self.store.query(constraints))
        if entity is None:
            return not_found_response(id)

        item = await self.after_read(entity, request)
        return success_response(self.serialize(item))

    async def create(self, request: Request) -> Response:
        payload = await self.read_payload(request)
        outcome = payload_or_abort(await self.before_create(payload, request))
        if isinstance(outcome, Abort):
            logger.info("Create on %s avoided by before_create", self.model.__name__)
            return success_response({"id": None, "description": outcome.description})

        entity = self.store.create(outcome)

        override = await self.after_create(entity, request)
        if has_override(override):
            return override_response(override)

        return success_response({"id": self.store.identifier(entity)}, self.create_status)

    async def update(self, request: Request, id: Any) -> Response:
        constraints = self.resolve_constraints(Operation.UPDATE, request, with_relations=False)
        entity = self.store.find(id, self.store.query(constraints))
        if entity is None:
            return not_found_response(id)
        key = self.store.identifier(entity)

        payload = await self.read_payload(request)
        outcome = payload_or_abort(await self.before_update(payload, entity, request))
        if isinstance(outcome, Abort):
            logger.info("Update of %s %s avoided by before_update", self.model.__name__, key)
            return success_response({"id": key, "description": outcome.description})

        self.store.save(entity, outcome)

        override = await self.after_update(entity, request)
        if has_override(override):
            return override_response(override)

        return success_response({"id": key}, self.update_status)

    async def delete(self, request: Request, id: Any) -> Response:
        constraints = self.resolve_constraints(Operation.DELETE, request)
        entity = self.store.find(id, self.store.query(constraints))
        if entity is None:
            return not_found_response(id)
        key = self.store.identifier(entity)

        allowed = await self.before_delete(entity, request)
        if allowed is False or isinstance(allowed, Abort):
            description = allowed.description if isinstance(allowed, Abort) else ACTION_AVOIDED
            logger.info("Delete of %s %s avoided by before_delete", self.model.__name__, key)
            return success_response({"id": key, "description": description})

        self.store.delete(entity)

        override = await self.after_delete(entity, request)
        if has_override(override):
            return override_response(override)

        return success_response({"id": key}, self.delete_status)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def read_payload(self, request: Request) -> dict[str, Any]:
        """Request body as a dict. An empty body is an empty payload."""
        body = await request.body()
        if not body.strip():
            return {}
        try:
            data = await request.json()
        except ValueError as e:
            raise InvalidPayloadError(f"Request body is not valid JSON: {e}")
        if not isinstance(data, dict):
            raise InvalidPayloadError("Request body must be a JSON object")
        return data

    def serialize(self, item: Any) -> Any:
        """Mapped instances become dicts; anything else is left as-is."""
        if is_mapped_instance(item):
            return self.store.to_dict(item)
        return item
