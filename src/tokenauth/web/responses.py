"""JSON responses built from ``Result`` envelopes and auth errors."""

from __future__ import annotations

from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from tokenauth.domain.exceptions import AuthError
from tokenauth.domain.models.result import Result

__all__ = [
    "auth_error_handler",
    "auth_error_response",
    "back_response",
    "param_error_handler",
    "respond",
]


def respond(result: Result, status_code: int = 200) -> JSONResponse:
    return JSONResponse(result.to_json(), status_code=status_code)


def auth_error_response(exc: AuthError) -> JSONResponse:
    return JSONResponse(exc.to_payload(), status_code=exc.status_code, headers=exc.headers())


def back_response(result: Any) -> Response:
    """Response for a route rule that finished the request early."""

    if isinstance(result, Response):
        return result
    if isinstance(result, Result):
        return respond(result)
    if isinstance(result, (dict, list)):
        return JSONResponse(Result.of_data(result).to_json())
    return PlainTextResponse("" if result is None else str(result))


async def auth_error_handler(request: Request, exc: Exception) -> Response:
    assert isinstance(exc, AuthError)
    return auth_error_response(exc)


async def param_error_handler(request: Request, exc: Exception) -> Response:
    return respond(Result.error(str(exc), code=400), status_code=400)
