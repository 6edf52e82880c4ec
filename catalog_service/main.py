"""Catalog service main application module.

This module initializes the FastAPI application and configures
core middleware, routers, exception handlers and startup/shutdown
events.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_service import __version__
from catalog_service.api import (
    attributes_router,
    auth_router,
    categories_router,
    health_router,
    options_router,
    products_router,
)
from catalog_service.api.middleware import setup_middleware
from catalog_service.api.responses import EnvelopeResponse, domain_error, error, request_id_of
from catalog_service.domain.exceptions import DomainError
from catalog_service.infrastructure.cache import get_cache_service
from catalog_service.infrastructure.config import settings
from catalog_service.infrastructure.database import engine
from catalog_service.infrastructure.logging import configure_logging

configure_logging()
logger = structlog.get_logger()

LOCATION_ROOTS = {"body", "query", "path", "header", "cookie"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    logger.info(
        "Starting catalog service",
        version=__version__,
        debug=settings.debug,
        cache_enabled=settings.cache_enabled,
    )

    yield

    logger.info("Shutting down catalog service")
    await get_cache_service().close()
    await engine.dispose()


app = FastAPI(
    title="Catalog Service",
    description="Multi-tenant product catalog with variant matrices, search and facets",
    version=__version__,
    lifespan=lifespan,
    default_response_class=EnvelopeResponse,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware (must be added before custom middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Setup custom middleware (request ID, error handling)
setup_middleware(app)

# Include routers
app.include_router(health_router, tags=["Health"])
app.include_router(auth_router)
app.include_router(products_router)
app.include_router(options_router)
app.include_router(attributes_router)
app.include_router(categories_router)


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def field_path(loc: tuple[Any, ...]) -> str:
    """Render a pydantic error location as ``variants[0].price``."""
    parts = list(loc)
    if parts and parts[0] in LOCATION_ROOTS:
        parts = parts[1:]
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path or "body"


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError) -> EnvelopeResponse:
    """Render domain errors with their own status and code."""
    if exc.status_code >= 500:
        logger.error("Domain error", error_code=exc.error_code, error=exc.message)
    return domain_error(request, exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> EnvelopeResponse:
    """Render request parsing failures as 400, naming the first bad field."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    if first.get("type") == "json_invalid":
        field, reason, message = "body", "invalid_json", "Request body is not valid JSON"
    else:
        field = field_path(tuple(first.get("loc", ())))
        reason = str(first.get("type", "invalid"))
        message = f"{field}: {first.get('msg', 'Invalid value')}"
    return error(
        status.HTTP_400_BAD_REQUEST,
        "VALIDATION_ERROR",
        message,
        request_id=request_id_of(request),
        field=field,
        reason=reason,
        details={"errorCount": len(errors)},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> EnvelopeResponse:
    """Handle HTTP exceptions, including router 404 and 405, with the envelope."""
    codes = {
        status.HTTP_404_NOT_FOUND: "NOT_FOUND",
        status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    }
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error(
        exc.status_code,
        codes.get(exc.status_code, "HTTP_ERROR"),
        message,
        request_id=request_id_of(request),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError) -> EnvelopeResponse:
    """Unique or foreign key violations that escaped the service checks."""
    logger.warning("Integrity violation", path=request.url.path, error=str(exc.orig))
    return error(
        status.HTTP_409_CONFLICT,
        "CONFLICT",
        "The request conflicts with existing data",
        request_id=request_id_of(request),
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> EnvelopeResponse:
    """Storage failures; SQL text is logged, never returned."""
    logger.exception("Database error", path=request.url.path, method=request.method)
    return error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "DATABASE_ERROR",
        "A storage error occurred",
        request_id=request_id_of(request),
    )


@app.exception_handler(TimeoutError)
async def timeout_exception_handler(request: Request, exc: TimeoutError) -> EnvelopeResponse:
    """Requests that ran past the deadline; their transaction is rolled back."""
    logger.warning("Request timed out", path=request.url.path, method=request.method)
    return error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "TIMEOUT",
        "The request timed out",
        request_id=request_id_of(request),
    )
