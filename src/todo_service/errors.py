"""
Domain exceptions and their mapping onto HTTP responses.

The lifecycle layer raises ``NotFoundError`` and ``InvalidArgumentError``;
the handlers registered by ``register_exception_handlers`` translate those,
request validation failures and any unexpected exception into one JSON
envelope:

    {
        "statusCode": 404,
        "error": "Not Found",
        "message": "Todo <id> not found",
        "detail": null,
        "path": "/todos/<id>",
        "method": "GET",
        "requestId": "<x-request-id>",
        "timestamp": "2025-01-31T13:45:00+00:00"
    }
"""
from __future__ import annotations

import logging
import uuid
from http import HTTPStatus
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .utils import utc_now

logger = logging.getLogger(__name__)


class TodoServiceError(Exception):
    """Base class for errors raised by the todo lifecycle layer."""

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR


class NotFoundError(TodoServiceError):
    """Raised when a todo id does not exist."""

    status_code = HTTPStatus.NOT_FOUND

    def __init__(self, todo_id: str) -> None:
        super().__init__(f"Todo {todo_id} not found")
        self.todo_id = todo_id


class InvalidArgumentError(TodoServiceError):
    """Raised for malformed input and for mutations of past-due todos."""

    status_code = HTTPStatus.BAD_REQUEST


def _request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    return rid if rid else str(uuid.uuid4())


# PUBLIC_INTERFACE
def error_response(
    request: Request,
    status_code: int,
    message: Any,
    detail: Optional[Any] = None,
    exc: Optional[BaseException] = None,
) -> JSONResponse:
    """
    Build the uniform error envelope and log the failure.

    Server errors are logged with their traceback; client errors are logged
    as warnings without one.
    """
    request_id = _request_id(request)
    path = request.url.path
    summary = f"[{request_id}] {request.method} {path} -> {status_code}"
    if status_code >= 500:
        logger.error(summary, exc_info=exc)
    else:
        logger.warning("%s: %s", summary, message)

    return JSONResponse(
        status_code=status_code,
        content={
            "statusCode": status_code,
            "error": HTTPStatus(status_code).phrase,
            "message": message,
            "detail": jsonable_encoder(detail),
            "path": path,
            "method": request.method,
            "requestId": request_id,
            "timestamp": utc_now().isoformat(),
        },
        headers={"x-request-id": request_id},
    )


async def todo_service_error_handler(request: Request, exc: TodoServiceError) -> JSONResponse:
    """Map lifecycle errors (not found, invalid argument) to 404/400."""
    return error_response(request, int(exc.status_code), str(exc), exc=exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Return a consistent JSON structure for request validation errors.

    Malformed bodies, empty descriptions and unparseable due dates all land
    here and are reported as 400 with pydantic's error list in ``detail``.
    """
    return error_response(
        request,
        HTTPStatus.BAD_REQUEST,
        "Request validation failed",
        detail=exc.errors(),
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wrap framework-raised HTTP errors (unknown route, bad method) in the envelope."""
    return error_response(request, exc.status_code, exc.detail)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Anything else is a 500; the exception text is logged but never returned."""
    return error_response(
        request,
        HTTPStatus.INTERNAL_SERVER_ERROR,
        "Internal server error",
        exc=exc,
    )


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI) -> None:
    """Attach all error handlers to the application."""
    app.add_exception_handler(TodoServiceError, todo_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
