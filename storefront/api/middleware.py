"""HTTP middleware.

Two layers wrap every request:

- `RequestIdMiddleware` (outermost) assigns the correlation id, binds it
  into the structlog context and writes one access log line.
- `ErrorHandlerMiddleware` turns anything the exception handlers in
  `storefront.api.errors` did not claim into a 500 envelope.
"""

import time
from typing import Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from storefront.api.errors import error_body

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlate a request across logs, error bodies and the response.

    An incoming X-Request-ID is reused; otherwise a UUID is generated.
    The id is stored on `request.state.request_id`.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            try:
                response = await call_next(request)
                status_code = response.status_code
            finally:
                logger.info(
                    "Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler for exceptions no handler claimed.

    The client gets a generic message; the real error goes to the log.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger.exception(
                "Unhandled exception",
                method=request.method,
                path=request.url.path,
                error_type=type(exc).__name__,
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=error_body(request, "An internal error occurred", exc),
            )


def setup_middleware(app: FastAPI) -> None:
    """Install the request id and catch-all error middleware.

    Starlette runs the most recently added middleware first, so the
    error handler is added before the request id layer to sit inside it
    and see the bound id.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestIdMiddleware)
