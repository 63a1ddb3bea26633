# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""FastAPI Application Factory.

This module provides the main application factory for the SchoolHub API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from schoolhub.api.middleware.auth import AuthMiddleware
from schoolhub.api.routes import health
from schoolhub.api.v1 import router as v1_router
from schoolhub.core.config import Settings, get_settings
from schoolhub.domains.errors import DomainError, UnexpectedError
from schoolhub.infrastructure.database.connection import DatabaseError, DatabaseManager
from schoolhub.utils.logging import setup_logging

logger = logging.getLogger(__name__)

_HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
}


def _error_body(code: str, message: str, details: Any = None) -> dict[str, Any]:
    """Build the failure envelope."""
    return {"success": False, "error": code, "message": message, "data": details or None}


# =========================================================================
# Exception handlers
# =========================================================================


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a domain error with its taxonomy status."""
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.code, exc.message, exc.details),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request validation failures as 400."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"] if part != "body"),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning("%s %s invalid request: %s", request.method, request.url.path, errors)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("validation_error", "Request validation failed", {"errors": errors}),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors raised by dependencies and routing."""
    code = _HTTP_ERROR_CODES.get(exc.status_code, "http_error")
    logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(code, str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def database_error_handler(request: Request, exc: DatabaseError) -> JSONResponse:
    """Render store failures as an unexpected error."""
    logger.error(
        "%s %s database failure: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=UnexpectedError.status_code,
        content=_error_body(UnexpectedError.code, "An unexpected database error occurred"),
    )


# =========================================================================
# Lifespan
# =========================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Creates the DatabaseManager on startup unless one was injected, and
    disposes of it on shutdown. In development the schema is created
    from the ORM metadata.

    Args:
        app: The FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "Starting SchoolHub API (environment=%s, debug=%s)",
        settings.environment,
        settings.debug,
    )

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = DatabaseManager(settings)

    if owns_database and settings.is_development:
        try:
            await app.state.database.create_schema()
            logger.info("Database schema ensured")
        except DatabaseError as e:
            logger.warning("Failed to create database schema: %s", str(e))

    yield

    if owns_database:
        await app.state.database.close()
        logger.info("Database connections closed")

    logger.info("Shutting down SchoolHub API")


def create_app(
    settings: Settings | None = None,
    database: DatabaseManager | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    This factory function creates a new FastAPI instance with all
    middleware, routes, and configurations applied.

    Args:
        settings: Settings to use instead of the environment.
        database: Pre-built database manager (tests inject one).

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title="SchoolHub API",
        description="Multi-tenant school administration backend",
        version="1.0.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
        # Disable automatic redirects from /path to /path/
        # This prevents 307 redirects that lose Authorization headers
        redirect_slashes=False,
    )

    # =========================================================================
    # State
    # =========================================================================
    app.state.settings = settings
    app.state.database = database

    # =========================================================================
    # Exception handlers
    # =========================================================================
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(DatabaseError, database_error_handler)

    # =========================================================================
    # Middleware (order matters - last added is first executed)
    # =========================================================================
    app.add_middleware(AuthMiddleware, settings=settings.jwt)

    # CORS middleware (added last to execute first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins_list,
        allow_credentials=settings.cors.allow_credentials,
        allow_methods=settings.cors.allow_methods,
        allow_headers=settings.cors.allow_headers,
    )

    # =========================================================================
    # Routes
    # =========================================================================
    app.include_router(health.router, tags=["Health"])
    app.include_router(v1_router)

    return app
