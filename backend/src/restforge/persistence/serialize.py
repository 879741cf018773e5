"""Convert mapped instances into plain dicts for JSON responses."""

from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable


def is_mapped_instance(value: Any) -> bool:
    try:
        state = inspect(value)
    except NoInspectionAvailable:
        return False
    return hasattr(state, "mapper") and hasattr(state, "unloaded")


def to_dict(entity: Any, _active: set[int] | None = None) -> dict[str, Any]:
    """Serialize column values plus any relations that are already loaded.

    Relations that were not eager-loaded are left out rather than lazily
    fetched. A relation pointing back to an object already being
    serialized higher up the tree is skipped.
    """
    active = _active if _active is not None else set()
    active.add(id(entity))

    state = inspect(entity)
    mapper = state.mapper
    data: dict[str, Any] = {
        attr.key: getattr(entity, attr.key) for attr in mapper.column_attrs
    }

    for rel in mapper.relationships:
        if rel.key in state.unloaded:
            continue
        value = getattr(entity, rel.key)
        if value is None:
            data[rel.key] = None
        elif rel.uselist:
            data[rel.key] = [
                to_dict(item, active) for item in value if id(item) not in active
            ]
        elif id(value) not in active:
            data[rel.key] = to_dict(value, active)

    active.discard(id(entity))
    return data
