"""Shared type definitions for restforge."""

from dataclasses import dataclass, field
from enum import Enum


class Operation(Enum):
    """The five operations every resource exposes."""

    INDEX = "index"
    ONE = "one"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, name: "str | Operation") -> "Operation":
        """Resolve an operation from its (case-insensitive) name.

        Raises:
            ValueError: If the name is not one of the five operations
        """
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            valid = ", ".join(op.value for op in cls)
            raise ValueError(f"Unknown operation '{name}'. Expected one of: {valid}")


ALL_OPERATIONS: tuple[Operation, ...] = tuple(Operation)


@dataclass
class UserContext:
    """Who is calling: resolved from a bearer token by AuthMiddleware
    and read by the role checks in ``restforge.auth``.
    """

    user_id: str | None = None
    tenant_id: str | None = None
    roles: list[str] = field(default_factory=list)
