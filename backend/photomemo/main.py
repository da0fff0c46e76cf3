"""
PhotoMemo Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       uvicorn serves the module-level `app` (uvicorn photomemo.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                      FastAPI App                        │
    │                                                         │
    │  Middleware:  Request ID → Logging → GZip → CORS        │
    │                                                         │
    │  Routes:      /api/auth/*   /api/posts/*   /api/uploads │
    │               /   /health                               │
    │                                                         │
    │  Exception Handlers:                                    │
    │   PhotoMemoError → its own status (400/401/403/404/409) │
    │   Database/FileStorage → 500 generic                    │
    │   unmatched route → 500 generic                         │
    │   anything else → 500 generic                           │
    └─────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from photomemo import __version__
from photomemo.config import settings
from photomemo.database import dispose_engine
from photomemo.exceptions import DatabaseError, FileStorageError, PhotoMemoError
from photomemo.middleware.logging import RequestLoggingMiddleware
from photomemo.middleware.request_id import RequestIDMiddleware, request_id_var
from photomemo.routes import auth, health, posts, uploads

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout so
    container runtimes collect it. Third-party loggers that log every query
    or connection are raised to WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("PhotoMemo Backend starting up...")

    # Misconfiguration is reported, not fatal: health checks keep answering
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    logger.info("Storage base URL: %s", settings.storage_base_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)

    yield

    logger.info("PhotoMemo Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(error: str, message: str, details=None) -> dict:
    body = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        body["details"] = details
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP responses.

    Client errors expose their message and (for validation errors) the
    offending field. Server errors expose a generic message only; the
    context and stack trace go to the log.
    """

    @app.exception_handler(DatabaseError)
    @app.exception_handler(FileStorageError)
    async def handle_server_side_error(request: Request, exc: PhotoMemoError):
        rid = request_id_var.get("")
        logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("server_error", exc.message),
        )

    @app.exception_handler(PhotoMemoError)
    async def handle_app_error(request: Request, exc: PhotoMemoError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            return JSONResponse(
                status_code=exc.status_code,
                content=_error_body("server_error", GENERIC_SERVER_ERROR),
            )

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        details = {"field": exc.context["field"]} if "field" in exc.context else None
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.error_code, exc.message, details),
            headers=headers,
        )

    @app.exception_handler(404)
    async def handle_unmatched_route(request: Request, exc: Exception):
        # Unknown paths answer 500, the same as the service always has
        logger.warning("[%s] No route for %s %s", request_id_var.get(""), request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=_error_body("server_error", GENERIC_SERVER_ERROR),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body("internal_server_error", GENERIC_SERVER_ERROR),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="PhotoMemo API",
        description="Personal photo memos: accounts, posts and image attachments on S3.",
        version=__version__,
        lifespan=lifespan,
    )

    # Added in reverse execution order: RequestID runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # the session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(posts.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


app = create_app()
