"""Exceptions raised by restforge.

The query and lifecycle code raises these and never catches them; the
application boundary decides how they reach the client (see
``restforge.api.app``).
"""


class RestForgeError(Exception):
    """Base exception for restforge errors."""

    pass


class InvalidQueryError(RestForgeError, ValueError):
    """Raised when query parameters or constraints cannot be applied.

    Examples: an unknown sort field, an ``order`` other than asc/desc,
    an unknown relation name, an unsupported comparison operator.
    """

    pass


class InvalidPayloadError(RestForgeError, ValueError):
    """Raised when a request body is not a JSON object."""

    pass
