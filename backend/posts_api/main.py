"""
Posts API — FastAPI Application Factory
========================================

What:  Builds and configures the FastAPI application.
How:   `create_app(settings)` constructs the Database handle and the services
       from the given settings, stores them on `app.state`, registers
       middleware, exception handlers and routers. No app or engine exists
       at module level; importing this module opens nothing.
Who:   uvicorn (`uvicorn --factory posts_api.main:create_app`),
       `python -m posts_api.main`, tests.

Application Architecture:
    ┌──────────────────────────────────────────────────────┐
    │                    FastAPI App                       │
    │                                                      │
    │  Middleware:  Request ID → Logging → CORS            │
    │                                                      │
    │  Routes:                                             │
    │   POST /login        GET /posts      GET /posts/{id} │
    │   POST /posts (auth) POST /posts/{id}/favorite       │
    │   GET /              GET /health                     │
    │                                                      │
    │  Exception Handlers:                                 │
    │   Validation→400  Auth→401  Forbidden→403            │
    │   NotFound→404    Storage→500  Unexpected→500        │
    └──────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → settings sanity check → create missing tables
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from posts_api import __version__
from posts_api.config import Settings, get_settings
from posts_api.database import Database
from posts_api.exceptions import (
    AuthenticationRequiredError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
    PostsAPIError,
    StorageError,
    ValidationError,
)
from posts_api.middleware.logging import RequestLoggingMiddleware
from posts_api.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from posts_api.routes import auth, health, posts
from posts_api.services.auth_service import AuthService
from posts_api.services.post_service import PostService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str) -> None:
    """
    Configure process-wide logging: one stdout handler, one line format.

    Format: 2026-01-15T12:00:00 [INFO] posts_api.access: GET /posts 200 3.1ms [1f3a9c2e] from 127.0.0.1
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access middleware replaces uvicorn's access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup: configure logging, report risky settings, create missing tables.
    Shutdown: dispose the engine so every pooled connection is closed.
    """
    settings: Settings = app.state.settings
    database: Database = app.state.database

    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("Posts API %s starting up (environment=%s)", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    if settings.db_create_tables:
        await database.create_all()
        logger.info("Database schema ensured")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Posts API shutting down...")
    await database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    # The catch-all handler runs outside the middleware stack, after the
    # ContextVar has been reset; request.state still holds the ID.
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def _error_body(
    request: Request,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = _request_id(request)
    return body


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Map every exception type to one HTTP status and one JSON error shape.

    Handler table:
        ValidationError / RequestValidationError → 400
        AuthenticationRequiredError              → 401 (+ WWW-Authenticate)
        InvalidCredentialsError                  → 401
        ForbiddenError                           → 403
        NotFoundError                            → 404
        Starlette HTTPException (unknown route…) → its own status
        StorageError                             → 500, sanitized
        PostsAPIError (base)                     → 500
        Exception (fallback)                     → 500, detail only outside production
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", _request_id(request), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body(request, "validation_error", exc.message, exc.context),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed JSON or wrongly typed fields: 400, same as missing fields."""
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Invalid request body: %s", _request_id(request), errors)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                request, "validation_error", "Invalid request body.", {"errors": errors}
            ),
        )

    @app.exception_handler(AuthenticationRequiredError)
    async def handle_authentication_required(request: Request, exc: AuthenticationRequiredError):
        return JSONResponse(
            status_code=401,
            content=_error_body(request, "authentication_required", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return JSONResponse(
            status_code=401,
            content=_error_body(request, "invalid_credentials", exc.message),
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        # The reason (expired, bad signature, ...) is for the log only
        logger.warning("[%s] Token rejected: %s", _request_id(request), exc.reason)
        return JSONResponse(
            status_code=403,
            content=_error_body(request, "forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body(request, "not_found", exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Framework-raised errors: unknown routes, wrong methods."""
        if exc.status_code == 404:
            error, message = "not_found", "Route not found"
        else:
            error, message = "http_error", str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, error, message),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error(
            "[%s] Storage error: %s | Context: %s", _request_id(request), exc.message, exc.context
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "server_error",
                "An internal error occurred. Please try again later.",
            ),
        )

    @app.exception_handler(PostsAPIError)
    async def handle_app_error(request: Request, exc: PostsAPIError):
        logger.error("[%s] Unhandled application error: %s", _request_id(request), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body(request, "server_error", exc.message),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Last resort. The stack trace goes to the log, never to the client in production."""
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
        details = None
        if not settings.is_production:
            details = {"exception": type(exc).__name__, "detail": str(exc)}
        response = JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
                details,
            ),
        )
        if rid:
            response.headers[REQUEST_ID_HEADER] = rid
        return response


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to build the app from. Defaults to the
                  process-wide `get_settings()`; tests pass their own.

    Returns:
        A FastAPI instance owning its own Database handle and services.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Posts API",
        description=(
            "A small posts service: log in for a bearer token, create posts with "
            "a photo URL, list and read posts, and mark favourites."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Owned Resources ───────────────────────────────────────────────────
    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.post_service = PostService()
    app.state.auth_service = AuthService(settings)

    # ── Middleware (last added runs first) ────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app, settings)

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(health.router)

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(
        "posts_api.main:create_app",
        factory=True,
        host=_settings.backend_host,
        port=_settings.backend_port,
        log_level=_settings.log_level.lower(),
    )
