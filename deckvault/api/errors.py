"""
Exception handlers translating failures into the response envelope.

The HTTP status always comes from the exception type:
- DeckError subclasses carry their own status
- request body/parameter validation -> 400 VALIDATION_ERROR
- database errors -> 500 INTERNAL_ERROR (details only in the log)
"""

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from deckvault.models.failure import (
    ApiResponse,
    DeckError,
    ErrorCode,
    FieldViolation,
    InternalError,
)

logger = logging.getLogger(__name__)

# Request sections pydantic prefixes onto error locations
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}
_VALUE_ERROR_PREFIX = "Value error, "


def envelope_response(status_code: int, response: ApiResponse[Any]) -> JSONResponse:
    """Serialize an envelope the same way endpoints do (aliases, no nulls)."""
    content = jsonable_encoder(response, by_alias=True, exclude_none=True)
    return JSONResponse(status_code=status_code, content=content)


def error_response(error: DeckError) -> JSONResponse:
    return envelope_response(error.status_code, error.to_response())


def violations_from_errors(errors: Sequence[Any]) -> list[FieldViolation]:
    """Flatten pydantic/FastAPI error dicts into field violations."""
    violations: list[FieldViolation] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if len(location) > 1 and location[0] in _LOCATION_PREFIXES:
            location = location[1:]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX) :]
        violations.append(FieldViolation(field=".".join(location), message=message))
    return violations


async def handle_deck_error(_request: Request, exc: DeckError) -> JSONResponse:
    if isinstance(exc, InternalError):
        logger.error("Internal error: %r", exc.cause)
    return error_response(exc)


async def handle_request_validation_error(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    response = ApiResponse.failure(
        code=ErrorCode.VALIDATION_ERROR,
        message="Validation failed",
        details=violations_from_errors(exc.errors()),
    )
    return envelope_response(status.HTTP_400_BAD_REQUEST, response)


async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return error_response(InternalError(exc))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        code = ErrorCode.NOT_FOUND
        message = f"Route {request.method} {request.url.path} not found"
    elif exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        code = ErrorCode.INTERNAL_ERROR
        message = "Internal server error"
    else:
        code = ErrorCode.VALIDATION_ERROR
        message = str(exc.detail)
    return envelope_response(exc.status_code, ApiResponse.failure(code=code, message=message))


def register_exception_handlers(app: FastAPI) -> None:
    # Handlers are typed per exception; Starlette only types them as Exception
    app.add_exception_handler(DeckError, handle_deck_error)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, handle_database_error)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)  # type: ignore[arg-type]
