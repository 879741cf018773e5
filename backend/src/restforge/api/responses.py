"""Success/error response envelopes.

Every response built here has the shape ``{"success": bool, "data": ...}``.
"""

from collections.abc import Mapping
from typing import Any

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from starlette.responses import JSONResponse, Response


class ErrorReason(BaseModel):
    reason: str


class ErrorEnvelope(BaseModel):
    """Error envelope, used to document 400 and 404 responses."""

    success: bool = False
    data: ErrorReason


def success_response(
    data: Any,
    status_code: int = 200,
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Build a success envelope.

    A 204 response carries no body, so the envelope is dropped for it.
    """
    if status_code == 204:
        return Response(status_code=204, headers=dict(headers or {}))
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": True, "data": data}),
        headers=dict(headers or {}),
    )


def error_response(
    data: Any,
    status_code: int = 400,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "data": data}),
        headers=dict(headers or {}),
    )


def not_found_response(id: Any) -> JSONResponse:
    return error_response({"reason": f"Entity with {id} id does not exist"}, 404)


def override_response(outcome: Any) -> Response:
    """Return an after-hook's alternate response unchanged.

    Starlette responses are returned as-is; other values are JSON-encoded
    with status 200 and no envelope.
    """
    if isinstance(outcome, Response):
        return outcome
    return JSONResponse(content=jsonable_encoder(outcome))
