"""Hook outcome types for the resource lifecycle.

- before_create / before_update return a payload mapping or ``Abort``
- before_delete returns a bool (False aborts)
- after_create / after_update / after_delete return None or an alternate
  response that replaces the default envelope
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from starlette.responses import Response

ACTION_AVOIDED = "Action avoided"


@dataclass(frozen=True)
class Abort:
    """Outcome of a before-hook that declines the mutation.

    Aborting is not an error: the operation still answers with a success
    envelope carrying ``description``.

    Attributes:
        description: Text returned to the client
    """

    description: str = ACTION_AVOIDED


ABORT = Abort()


def payload_or_abort(outcome: Any) -> dict[str, Any] | Abort:
    """Normalize a before-create/update outcome.

    ``Abort`` passes through. None and empty mappings are treated as
    ``ABORT``; any other mapping is returned as a dict.
    """
    if isinstance(outcome, Abort):
        return outcome
    if not outcome:
        return ABORT
    if not isinstance(outcome, Mapping):
        raise TypeError(
            f"Before-hooks must return a mapping or Abort, got {type(outcome).__name__}"
        )
    return dict(outcome)


def has_override(outcome: Any) -> bool:
    """True when an after-hook returned a non-empty alternate response.

    None, False, zero and empty containers all keep the default envelope.
    """
    if isinstance(outcome, Response):
        return True
    return bool(outcome)
