"""
Heritage Numérique Backend — FastAPI Application Factory
=========================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() registers middleware, exception handlers and routers;
       lifespan() runs startup and shutdown work.
Who:   uvicorn heritage.main:app

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware: RateLimit → RequestID → Logging → GZip → CORS   │
    │                                                              │
    │  /health                      (no prefix, no auth)           │
    │  <uploads_url_prefix>/...     stored media                   │
    │  /api/v1/auth, /users, /families, /invitations, /categories, │
    │          /contents, /publication-requests, /public,          │
    │          /genealogy, /quizzes, /notifications,               │
    │          /dashboard, /admin                                  │
    │                                                              │
    │  Exception handlers → uniform error envelope                 │
    │  {status, error, message, path, timestamp, request_id,       │
    │   details}                                                   │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Logging
    2. Configuration check (logged, the server still starts)
    3. Upload directories
    4. Super admin bootstrap when SUPERADMIN_EMAIL/PASSWORD are set
    5. Background invitation expiry sweep

    Shutdown:
    1. Cancel the sweep
    2. Dispose the database engine
"""

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from heritage import __version__
from heritage.config import settings
from heritage.database import async_session_factory, dispose_engine
from heritage.exceptions import (
    CircuitBreakerOpenError,
    HeritageError,
    RateLimitExceededError,
    TranslationServiceError,
    error_envelope,
)
from heritage.middleware.logging import RequestLoggingMiddleware
from heritage.middleware.rate_limit import RateLimitMiddleware
from heritage.middleware.request_id import RequestIDMiddleware, request_id_var
from heritage.routes import (
    auth,
    categories,
    contents,
    dashboard,
    families,
    genealogy,
    health,
    invitations,
    notifications,
    public,
    quizzes,
    uploads,
    users,
)
from heritage.services.auth_service import auth_service
from heritage.services.file_service import file_service
from heritage.services.invitation_service import invitation_service

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once; every module logs through getLogger(__name__)."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Startup Tasks
# ══════════════════════════════════════════════════════════════════════════

async def bootstrap_superadmin() -> None:
    if not (settings.superadmin_email and settings.superadmin_password):
        return
    async with async_session_factory() as session:
        try:
            await auth_service.ensure_superadmin(
                session, settings.superadmin_email, settings.superadmin_password
            )
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Super admin bootstrap failed: %s", str(e))


async def sweep_expired_invitations(interval: int) -> None:
    """Runs until cancelled, marking overdue PENDING invitations EXPIRED."""
    while True:
        try:
            async with async_session_factory() as session:
                await invitation_service.expire_old_invitations(session)
                await session.commit()
        except SQLAlchemyError as e:
            logger.warning("Invitation expiry sweep failed: %s", str(e))
        await asyncio.sleep(interval)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Heritage Numérique backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.warning("Configuration warning: %s", str(e))

    file_service.ensure_directories()
    await bootstrap_superadmin()

    sweep_task: Optional[asyncio.Task] = None
    if settings.invitation_sweep_interval > 0:
        sweep_task = asyncio.create_task(
            sweep_expired_invitations(settings.invitation_sweep_interval)
        )

    logger.info("API mounted at %s", settings.api_prefix)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Heritage Numérique backend shutting down...")
    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _envelope_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=error_envelope(status_code, error, message, request.url.path, details),
        headers=headers,
    )


def _field_path(loc) -> str:
    # ("body", "email") → "email"; ("query", "type") → "type"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form", "header")]
    return ".".join(parts) or ".".join(str(p) for p in loc)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Handler map:
        HeritageError           → its own status_code / error_code
        RequestValidationError  → 400 "Validation error", details.errors
        HTTPException           → its status code (404 unknown route, 405, ...)
        Exception               → 500, stack trace logged, never returned

    Server-side error context (paths, SQL, provider responses) is logged,
    only 4xx responses carry `details`.
    """

    @app.exception_handler(HeritageError)
    async def handle_heritage_error(request: Request, exc: HeritageError):
        rid = request_id_var.get("")
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        elif isinstance(exc, CircuitBreakerOpenError):
            headers = {"Retry-After": str(exc.recovery_time)}
        elif isinstance(exc, TranslationServiceError) and exc.retry_after:
            headers = {"Retry-After": str(exc.retry_after)}

        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            details = None
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            details = exc.context

        return _envelope_response(request, exc.status_code, exc.error_code, exc.message, details, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {_field_path(err.get("loc", ())): err.get("msg", "invalid") for err in exc.errors()}
        return _envelope_response(
            request, 400, "validation_error", "Validation error", {"errors": errors}
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _envelope_response(
            request,
            exc.status_code,
            "http_error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _envelope_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Heritage Numérique API",
        description=(
            "Family heritage platform: families and roles, tales, crafts, proverbs "
            "and riddles with a publication workflow, quizzes, genealogy trees, "
            "invitations and notifications."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Added innermost first: execution order is the reverse
    # (RateLimit → RequestID → Logging → GZip → CORS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(uploads.router)
    for module in (
        auth,
        users,
        families,
        invitations,
        categories,
        contents,
        public,
        genealogy,
        quizzes,
        notifications,
        dashboard,
    ):
        app.include_router(module.router, prefix=settings.api_prefix)

    return app


app = create_app()
