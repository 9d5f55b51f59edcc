"""
Blog Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes middleware registration, route mounting, error handling
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn app.main:app) or `python -m app`.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐       │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │       │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘       │
    │                                                     │
    │  Routes:                                            │
    │  /api/register  /api/login                          │
    │  /api/posts[/{id}]  /api/my-posts                   │
    │  /uploads/* (static)  /health  /                    │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation/Conflict/Credentials→400  NoToken→401   │
    │  BadToken/NotOwner→403  NotFound→404  Storage/DB→500│
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → upload dir → create missing tables
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from app import __version__
from app.config import settings
from app.database import create_tables, dispose_engine
from app.exceptions import (
    AuthenticationError,
    BlogError,
    ConflictError,
    DatabaseError,
    FileStorageError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware, request_id_var
from app.routes import auth, health, posts
from app.services.file_service import PUBLIC_PREFIX

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] app.services.post_service: Post ... created
    Output goes to stdout, where Docker and systemd collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These libraries log every operation at DEBUG/INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Blog Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: local development runs on the defaults on purpose
        logger.warning("%s", str(e))

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Upload directory: %s", upload_dir.resolve())

    if settings.db_create_tables:
        await create_tables()

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)

    yield

    logger.info("Blog Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """Builds the {error, message, [details], request_id} body every error uses."""
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and response bodies.

    Handler hierarchy:
        ValidationError          → 400 validation_error (with details)
        ConflictError            → 400 conflict
        InvalidCredentialsError  → 400 invalid_credentials
        AuthenticationError      → 401 authentication_required
        InvalidTokenError        → 403 invalid_token
        PermissionDeniedError    → 403 forbidden
        NotFoundError            → 404 not_found
        FileStorageError         → 500 server_error
        DatabaseError            → 500 server_error
        BlogError (base)         → 500 server_error
        Exception (fallback)     → 500 internal_server_error

    Context dicts never reach the client except for ValidationError, whose
    context only names the offending field and the accepted values.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("Validation error: %s", exc.message)
        return error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return error_response(400, "conflict", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        logger.info("Login failed: %s", exc.context.get("reason", "unknown"))
        return error_response(400, "invalid_credentials", exc.message)

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return error_response(
            401,
            "authentication_required",
            exc.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(InvalidTokenError)
    async def handle_invalid_token(request: Request, exc: InvalidTokenError):
        return error_response(403, "invalid_token", exc.message)

    @app.exception_handler(PermissionDeniedError)
    async def handle_permission_denied(request: Request, exc: PermissionDeniedError):
        return error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return error_response(404, "not_found", exc.message)

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error("File storage error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(BlogError)
    async def handle_blog_error(request: Request, exc: BlogError):
        logger.error("Unhandled application error %s: %s | Context: %s", type(exc).__name__, exc.message, exc.context)
        return error_response(500, "server_error", GENERIC_SERVER_ERROR)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Stack trace is logged server-side only, never returned."""
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Blog API",
        description="User registration/login and blog posts with optional image attachments.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition: the last one added
    # sees the request first.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=False,  # bearer tokens travel in a header, not cookies
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(health.router)

    # Uploaded images; StaticFiles requires the directory to exist up front
    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount(PUBLIC_PREFIX, StaticFiles(directory=str(upload_dir)), name="uploads")

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()
