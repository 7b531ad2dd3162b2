"""
BillSense AI Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       error mapping and lifecycle management in one place.
How:   Factory pattern: create_app() builds an AppContext, stores it on
       `app.state.context`, and returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn billsense.main:app`), the `billsense` console script
       via serve(), and the test suite (one app per test).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌─────────────────┐      │
    │  │  CORS    │→│ Req ID   │→│  Logging        │      │
    │  └──────────┘ └──────────┘ └─────────────────┘      │
    │                                                     │
    │  Route tables:                                      │
    │  /api/auth   /api/invoices   /api/ai   / + /health  │
    │  (protected handlers declare Depends(protect))      │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ Auth→401 │ NotFound→404 │ 409     │
    │  LLM→503 │ DB→500 │ anything else→500               │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Connect to the database (fatal: the server never starts listening)

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from billsense import __version__
from billsense.config import Settings, settings as default_settings
from billsense.database import Database
from billsense.dependencies import AppContext
from billsense.exceptions import (
    AuthenticationError,
    CircuitBreakerOpenError,
    ConflictError,
    DatabaseError,
    InvalidCredentialsError,
    LLMServiceError,
    NotFoundError,
    ValidationError,
)
from billsense.middleware.logging import RequestLoggingMiddleware
from billsense.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from billsense.routes import ai, auth, health, invoices
from billsense.services.ai_service import AIService
from billsense.services.gemini_service import GeminiService
from billsense.services.llm_base import LLMService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] billsense.access: GET /api/invoices 200 ...
    Output goes to stdout so container runtimes capture it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup and shutdown for one application instance.

    A database that cannot be reached at startup is fatal: the exception
    propagates out of the lifespan, Starlette reports `lifespan.startup.failed`
    and uvicorn exits before binding the port.
    """
    context: AppContext = app.state.context
    settings = context.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("=" * 60)
    logger.info("BillSense AI Backend starting up (environment=%s)...", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Auth and invoice routes still work without Gemini
        logger.error("Configuration error: %s", str(e))

    try:
        await context.database.connect()
    except DatabaseError:
        logger.critical("Database unreachable at startup; refusing to serve requests.")
        await context.database.dispose()
        raise

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("BillSense AI Backend shutting down...")
    await context.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside RequestIDMiddleware, after the ContextVar is reset
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    rid = _request_id(request)
    content = {"error": error, "message": message, "request_id": rid}
    if details:
        content["details"] = details
    response_headers = {REQUEST_ID_HEADER: rid} if rid else {}
    response_headers.update(headers or {})
    return JSONResponse(status_code=status_code, content=content, headers=response_headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the shared error body.

    Handler hierarchy:
        ValidationError, RequestValidationError → 400 validation_error
        AuthenticationError                     → 401 unauthorized
        InvalidCredentialsError                 → 401 invalid_credentials
        NotFoundError, unknown route or verb    → 404 not_found
        ConflictError                           → 409 conflict
        CircuitBreakerOpenError                 → 503 service_unavailable
        LLMServiceError                         → 503 llm_service_error
        DatabaseError                           → 500 server_error
        Exception (fallback)                    → 500 internal_server_error

    Internal details (stack traces, SQL, driver errors) are logged server-side
    and never placed in a response body.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return _error(request, 400, "validation_error", exc.message, exc.context)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed JSON, wrong types and missing required fields."""
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
                "message": err.get("msg", "Invalid value"),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", _request_id(request), errors)
        return _error(
            request, 400, "validation_error", "Invalid request data", {"errors": errors}
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return _error(
            request, 401, "unauthorized", exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return _error(request, 401, "invalid_credentials", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(request, 404, "not_found", exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Unmatched paths and unsupported verbs are both reported as 404."""
        if exc.status_code in (404, 405):
            return _error(
                request, 404, "not_found",
                f"Route {request.method} {request.url.path} not found",
            )
        return _error(
            request, exc.status_code, "http_error", str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error(request, 409, "conflict", exc.message)

    @app.exception_handler(CircuitBreakerOpenError)
    async def handle_circuit_breaker(request: Request, exc: CircuitBreakerOpenError):
        logger.warning("[%s] Circuit breaker open: %s", _request_id(request), exc.message)
        return _error(
            request, 503, "service_unavailable", exc.message,
            details={"recovery_time": exc.recovery_time},
            headers={"Retry-After": str(exc.recovery_time)},
        )

    @app.exception_handler(LLMServiceError)
    async def handle_llm_error(request: Request, exc: LLMServiceError):
        logger.error("[%s] LLM service error: %s", _request_id(request), exc.message)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error(request, 503, "llm_service_error", exc.message, exc.context, headers)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return _error(
            request, 500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", _request_id(request), str(exc), exc_info=True)
        return _error(
            request, 500, "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    llm: Optional[LLMService] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-derived instance.
        llm: Text-generation collaborator; defaults to GeminiService.

    Returns:
        A configured app whose collaborators live on `app.state.context`.
        Nothing connects until the lifespan runs.
    """
    settings = settings or default_settings
    llm = llm or GeminiService(settings)
    context = AppContext(
        settings=settings,
        database=Database(settings),
        llm=llm,
        ai=AIService(llm),
    )

    app = FastAPI(
        title="BillSense AI API",
        description="Invoice management with AI-assisted drafting, reminders and insights.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.context = context

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: CORS → RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=settings.cors_methods,
        allow_headers=settings.cors_headers,
        expose_headers=[REQUEST_ID_HEADER, "X-Total-Count", "Retry-After"],
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(invoices.router)
    app.include_router(ai.router)
    app.include_router(health.router)

    return app


def serve(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the app and, outside the test environment, run it under uvicorn.

    With NODE_ENV=test the configured app is returned without opening a
    listener so a test harness can drive it in-process.
    """
    settings = settings or default_settings
    application = create_app(settings)
    if settings.is_test:
        logger.info("Test environment: app built, listener not started")
        return application

    uvicorn.run(application, host=settings.host, port=settings.port, lifespan="on")
    return application


def main() -> None:
    """Console-script entry point."""
    serve()


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `billsense.main:app` to be importable
app = create_app()
