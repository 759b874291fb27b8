from __future__ import annotations

import logging
import time
import uuid
from typing import Awaitable, Callable

from fastapi import FastAPI, Request, Response

logger = logging.getLogger("todo_service.http")

REQUEST_ID_HEADER = "x-request-id"


async def request_logger(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """
    Tag each request with an id and log it once the response is ready.

    An incoming ``x-request-id`` header is reused; otherwise a UUID4 is
    generated. The id is stored on ``request.state.request_id`` for the error
    handlers and echoed back on the response.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception:
        # The 500 response is rendered outside this middleware
        _log_completed(request, request_id, 500, start)
        raise

    response.headers[REQUEST_ID_HEADER] = request_id
    _log_completed(request, request_id, response.status_code, start)
    return response


def _log_completed(request: Request, request_id: str, status_code: int, start: float) -> None:
    duration_ms = int((time.perf_counter() - start) * 1000)
    logger.info(
        "[%s] %s %s %s %dms",
        request_id,
        request.method,
        request.url.path,
        status_code,
        duration_ms,
    )


# PUBLIC_INTERFACE
def install_request_logging(app: FastAPI) -> None:
    """Register the request-id logging middleware on the app."""
    app.middleware("http")(request_logger)
