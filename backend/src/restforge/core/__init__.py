"""Core types shared across restforge."""

from restforge.core.types import ALL_OPERATIONS, Operation, UserContext

__all__ = ["ALL_OPERATIONS", "Operation", "UserContext"]
