"""API middleware for the catalog service.

Provides:
- Request correlation and tenant log context
- Error handling
"""

import time
from typing import Any, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_service.api.dependencies import SELLER_HEADER
from catalog_service.api.responses import error, request_id_of

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 128


def resolve_request_id(request: Request) -> str:
    """Return the caller's request id, or a new one when it is unusable.

    Ids that are blank, too long or not printable ASCII are replaced so
    they never reach logs or response headers.
    """
    raw = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
    if not raw or len(raw) > MAX_REQUEST_ID_LENGTH or not (raw.isascii() and raw.isprintable()):
        return str(uuid4())
    return raw


def tenant_context(request: Request) -> dict[str, Any]:
    """Log fields naming the tenant a request asks for.

    The header is logged as sent; it is not authorization. Bearer
    callers are scoped later by their token.
    """
    raw = request.headers.get(SELLER_HEADER)
    if raw is None:
        return {}
    return {"seller_header": raw.strip()[:32]}


# ============================================================================
# Request Context Middleware
# ============================================================================


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind the request id and tenant header to every log event.

    The id is kept on ``request.state`` for error bodies and services,
    and echoed in the ``X-Request-ID`` response header.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = resolve_request_id(request)
        request.state.request_id = request_id

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        with structlog.contextvars.bound_contextvars(request_id=request_id, **tenant_context(request)):
            try:
                response = await call_next(request)
                status_code = response.status_code
            finally:
                log = logger.warning if status_code >= 500 else logger.info
                log(
                    "Request completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


# ============================================================================
# Error Handling Middleware
# ============================================================================


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent error handling.

    Catches exceptions that escaped the exception handlers and returns
    the standard 500 envelope.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(
                "Unhandled exception",
                path=request.url.path,
                method=request.method,
                error=str(e),
            )
            return error(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "INTERNAL_ERROR",
                "An internal error occurred",
                request_id=request_id_of(request),
            )


# ============================================================================
# Middleware Setup
# ============================================================================


def setup_middleware(app: FastAPI) -> None:
    """Configure all middleware for the application.

    Middleware is added in reverse order (last added = first executed).

    Args:
        app: FastAPI application instance.
    """
    # Error handling (inside request id, so the id is available)
    app.add_middleware(ErrorHandlerMiddleware)

    # Request id and tenant log context (outermost)
    app.add_middleware(RequestContextMiddleware)
