"""
WiseNotes API — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn wisenotes.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│  Logging        │  │
    │  └──────────────┘ └──────────┘ └─────────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────┐ ┌──────────────┐ ┌────────────┐   │
    │  │ /notebooks   │ │ .../notes    │ │ /health    │   │
    │  └──────────────┘ └──────────────┘ └────────────┘   │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ 401 │ 400 (field) │ 403 │ 404 │ 500 generic  │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → create tables (DB_CREATE_ALL)
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from wisenotes import __version__
from wisenotes.config import settings
from wisenotes.database import create_schema, dispose_engine
from wisenotes.exceptions import (
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
    WiseNotesError,
)
from wisenotes.middleware.logging import RequestLoggingMiddleware
from wisenotes.middleware.rate_limit import RateLimitMiddleware
from wisenotes.middleware.request_id import RequestIDMiddleware, request_id_var
from wisenotes.routes import health, notebooks, notes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("WiseNotes API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health still answers and requests fail with 401
        logger.error("Configuration error: %s", str(e))

    if settings.db_create_all:
        await create_schema()
        logger.info("Database schema ensured")

    logger.info(
        "Validation limits: title<=%d, content<=%d",
        settings.title_max_length,
        settings.content_max_length,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("WiseNotes API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    field_name: Optional[str] = None,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
    request_id: Optional[str] = None,
) -> JSONResponse:
    """Builds the ErrorResponse body shared by every handler."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "field_name": field_name,
            "details": details,
            "request_id": request_id if request_id is not None else request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        UnauthenticatedError → 401 Unauthorized (+ WWW-Authenticate)
        ValidationError      → 400 Bad Request (field_name set)
        ForbiddenError       → 403 Forbidden
        NotFoundError        → 404 Not Found
        DatabaseError        → 500 Internal Server Error (generic message)
        WiseNotesError       → 500 Internal Server Error
        Exception            → 500 Internal Server Error

    Exception context and stack traces are logged, never returned.
    """

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        logger.info("[%s] Unauthenticated: %s", request_id_var.get(""), exc.context)
        return error_response(
            401,
            "unauthenticated",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        details = {k: v for k, v in exc.context.items() if k != "field"} or None
        return error_response(400, "validation_error", exc.message, field_name=exc.field, details=details)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context
        )
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(WiseNotesError)
    async def handle_app_error(request: Request, exc: WiseNotesError):
        logger.error(
            "[%s] Unhandled application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs in ServerErrorMiddleware, outside RequestIDMiddleware: the
        # ContextVar is already reset, request.state still holds the id
        rid = getattr(request.state, "request_id", "")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
            request_id=rid,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Tests build a fresh app per test so middleware state (rate limit
    counters) is never shared between them.
    """
    app = FastAPI(
        title="WiseNotes API",
        description="Notebooks and notes, each visible only to the user who owns them.",
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(notebooks.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


app = create_app()
