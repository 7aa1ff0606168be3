"""
NoteKeeper Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app()` builds the collaborators (database handle, password
       context, token service), stores them on `app.state`, registers
       middleware, exception handlers and routers, and returns the app.
Who:   uvicorn (`uvicorn notekeeper.main:create_app --factory`) and the
       test suite, which calls `create_app()` with its own settings and
       database.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐        │
    │  │ Req ID   │→│ Logging  │→│ GZip │→│ CORS │        │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘        │
    │                                                     │
    │  Routes:                                            │
    │  POST /signup  POST /login  GET /health             │
    │  [require_identity] POST/GET /notes                 │
    │                     PUT/DELETE /notes/{id}          │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation→400 │ Unauthorized→401 │ Conflict→409   │
    │  Database→500   │ Other→500                         │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, optional table creation
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notekeeper import __version__
from notekeeper.config import Settings, settings as default_settings
from notekeeper.database import Database, database_from_settings
from notekeeper.exceptions import (
    ConflictError,
    DatabaseError,
    NoteKeeperError,
    UnauthorizedError,
    ValidationError,
)
from notekeeper.middleware.logging import RequestLoggingMiddleware
from notekeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from notekeeper.routes import auth, health, notes
from notekeeper.services.credential_store import build_password_context
from notekeeper.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] notekeeper.access: POST /login 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: logging and optional table creation. Shutdown: close the pool."""
    cfg: Settings = app.state.settings
    setup_logging(cfg.log_level)
    logger.info("NoteKeeper Backend %s starting up", __version__)

    db: Database = app.state.db
    if cfg.db_create_tables:
        await db.create_all()

    logger.info("Server ready at http://%s:%d", cfg.backend_host, cfg.backend_port)

    yield

    logger.info("NoteKeeper Backend shutting down...")
    await db.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return request_id_var.get("") or getattr(request.state, "request_id", "")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a uniform error body.

        ValidationError, RequestValidationError → 400
        UnauthorizedError (and subclasses)      → 401
        ConflictError                           → 409
        DatabaseError                           → 500 (generic message)
        NoteKeeperError (base)                  → 500
        Exception (fallback)                    → 500

    Responses never contain stack traces, SQL or token contents.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = _request_id(request)
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Schema failures (missing, unknown or mistyped fields) answer 400, not 422."""
        rid = _request_id(request)
        errors = jsonable_encoder(exc.errors(), exclude={"input", "ctx"})
        logger.warning("[%s] Request validation failed: %d error(s)", rid, len(errors))
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Missing fields" if _only_missing(errors) else "Invalid request",
                "details": {"errors": errors},
                "request_id": rid,
            },
        )

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        rid = _request_id(request)
        logger.warning("[%s] Unauthorized: %s", rid, exc.message)
        return JSONResponse(
            status_code=401,
            content={
                "error": "unauthorized",
                "message": exc.message,
                "request_id": rid,
            },
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        rid = _request_id(request)
        logger.info("[%s] Conflict: %s", rid, exc.message)
        return JSONResponse(
            status_code=409,
            content={
                "error": "conflict",
                "message": exc.message,
                "details": exc.context,
                "request_id": rid,
            },
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = _request_id(request)
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(NoteKeeperError)
    async def handle_app_error(request: Request, exc: NoteKeeperError):
        rid = _request_id(request)
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again or contact support.",
                "request_id": rid,
            },
        )


# Credential fields where an empty string counts as not supplied
_CREDENTIAL_FIELDS = {"username", "password"}


def _is_missing(err: Any) -> bool:
    if err.get("type") == "missing":
        return True
    loc = err.get("loc") or []
    return err.get("type") == "string_too_short" and bool(loc) and loc[-1] in _CREDENTIAL_FIELDS


def _only_missing(errors: Any) -> bool:
    return bool(errors) and all(_is_missing(err) for err in errors)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    app_settings: Optional[Settings] = None,
    db: Optional[Database] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Configuration; defaults to the environment-loaded singleton
        db:           Pre-built database handle (tests pass an in-memory one)

    Raises:
        ValueError: required configuration (JWT_SECRET) is missing
    """
    cfg = app_settings or default_settings
    cfg.validate_required_for_production()

    app = FastAPI(
        title="NoteKeeper API",
        description="Personal notes with tags, behind username/password login and bearer tokens.",
        version=__version__,
        lifespan=lifespan,
    )

    # ── Collaborators ─────────────────────────────────────────────────────
    app.state.settings = cfg
    app.state.db = db or database_from_settings(cfg)
    app.state.pwd_context = build_password_context(cfg.bcrypt_rounds)
    app.state.token_service = TokenService(
        cfg.jwt_secret.get_secret_value(),
        algorithm=cfg.jwt_algorithm,
        expire_minutes=cfg.jwt_expire_minutes,
    )

    # ── Middleware (last added executes first) ────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(notes.router)
    app.include_router(health.router)

    return app

