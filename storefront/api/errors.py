"""Centralized error responses.

Routes never format errors themselves: domain errors, HTTP errors and
request validation errors are turned into the same JSON envelope here.
The envelope always has a `message`; `stack` is added in debug mode.
"""

import traceback
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.domain.exceptions import DomainError
from storefront.infrastructure.config import settings

logger = structlog.get_logger()


def error_body(request: Request, message: str, exc: BaseException | None = None) -> dict[str, Any]:
    """Build the error envelope.

    Args:
        request: Current request (for the correlation id).
        message: Human-readable message.
        exc: Exception whose traceback is included in debug mode.

    Returns:
        JSON-serializable error body.
    """
    body: dict[str, Any] = {
        "message": message,
        "requestId": getattr(request.state, "request_id", None),
    }
    if settings.debug and exc is not None:
        body["stack"] = "".join(traceback.format_exception(exc))
    return body


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
    message = first.get("msg", "Invalid value")
    return f"{location}: {message}" if location else message


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Handle domain errors using the status they carry, 500 if none."""
    status_code = exc.status_code or status.HTTP_500_INTERNAL_SERVER_ERROR

    if status_code >= 500:
        logger.error(
            "Domain error without client status",
            path=request.url.path,
            method=request.method,
            error=exc.message,
            error_type=type(exc).__name__,
        )
    else:
        logger.info(
            "Request rejected",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            error=exc.message,
        )

    return JSONResponse(status_code=status_code, content=error_body(request, exc.message, exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    detail = exc.detail
    if isinstance(detail, dict):
        message = str(detail.get("message", detail))
    else:
        message = str(detail)

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, message, exc),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as 400s."""
    message = _validation_message(exc)
    logger.info(
        "Request validation failed",
        path=request.url.path,
        method=request.method,
        error=message,
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(request, message, exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all error handlers on the application.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(DomainError, domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
