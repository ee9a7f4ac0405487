"""
So Quotable Backend — FastAPI Application Factory
==================================================

What:  Builds the FastAPI app: logging, middleware, exception handlers, routers.
Who:   uvicorn (`uvicorn quotable.main:app`) and the test suite.

    ┌───────────────────────────────────────────────────────────┐
    │  RateLimit → RequestID → Logging → CORS → GZip            │
    │                                                           │
    │  /api/auth  /api/users  /api/email-verification           │
    │  /api/password-reset  /api/people  /api/quotes            │
    │  /api/images  /api/generated-images  /api/uploads         │
    │  /api/transformations  /api/admin  /health                │
    │                                                           │
    │  QuotableError subclasses → JSON error envelope           │
    └───────────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional, Type

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from quotable import __version__
from quotable.config import settings
from quotable.database import dispose_engine
from quotable.exceptions import (
    AdminOnlyError,
    ConflictError,
    DatabaseError,
    EmailDeliveryError,
    ImageUploadError,
    NotAuthenticatedError,
    NotAuthorizedError,
    NotFoundError,
    QuotableError,
    RateLimitExceededError,
    ValidationError,
)
from quotable.middleware.logging import RequestLoggingMiddleware
from quotable.middleware.rate_limit import RateLimitMiddleware
from quotable.middleware.request_id import RequestIDMiddleware, request_id_var
from quotable.routes import (
    admin,
    auth,
    email_verification,
    health,
    images,
    password_reset,
    people,
    quotes,
    uploads,
)

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Root logger to stdout; called once at startup before anything logs."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("So Quotable backend starting up (deployment=%s)", settings.deployment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health and public reads still work without email or Cloudinary
        logger.error("Configuration error: %s", e)

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("So Quotable backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

# (status, error code) per exception; checked most-specific first
ERROR_STATUS: Dict[Type[QuotableError], tuple] = {
    ValidationError: (400, "validation_error"),
    NotAuthenticatedError: (401, "not_authenticated"),
    NotAuthorizedError: (403, "not_authorized"),
    AdminOnlyError: (403, "admin_only"),
    NotFoundError: (404, "not_found"),
    ConflictError: (409, "conflict"),
    RateLimitExceededError: (429, "rate_limit_exceeded"),
    ImageUploadError: (502, "image_upload_failed"),
    EmailDeliveryError: (502, "email_delivery_failed"),
}


def error_body(code: str, message: str, details: Optional[dict] = None) -> dict:
    return {
        "error": code,
        "message": message,
        "details": details or None,
        "request_id": request_id_var.get(""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps the QuotableError hierarchy to the JSON error envelope.

    DatabaseError and unexpected exceptions never echo internals to the
    client; their details are logged with the request id.
    """

    @app.exception_handler(QuotableError)
    async def handle_quotable_error(request: Request, exc: QuotableError):
        rid = request_id_var.get("")
        status_code, code = ERROR_STATUS.get(type(exc), (500, "server_error"))

        if status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        elif status_code != 404:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {}
        if isinstance(exc, RateLimitExceededError):
            headers["Retry-After"] = str(exc.retry_after)

        return JSONResponse(
            status_code=status_code,
            content=error_body(code, exc.message, exc.context),
            headers=headers,
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="So Quotable API",
        description=(
            "Quote attribution and quote-card generation: people, quotes, "
            "Cloudinary images, and account management."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
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

    app.include_router(auth.router)
    app.include_router(email_verification.router)
    app.include_router(password_reset.router)
    app.include_router(people.router)
    app.include_router(quotes.router)
    app.include_router(images.router)
    app.include_router(uploads.router)
    app.include_router(admin.router)
    app.include_router(health.router)

    return app


app = create_app()
