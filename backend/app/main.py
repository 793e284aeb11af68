"""
Parcel Server Backend: FastAPI Application Factory
===================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
       Collaborators (document store, payment gateway) may be passed in;
       otherwise the lifespan builds them from settings.
Who:   uvicorn (`uvicorn app.main:app` or the `parcel-server` script), tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────┐
    │                       FastAPI App                       │
    │                                                         │
    │  Middleware Chain:                                      │
    │  ┌──────────┐ ┌──────────┐ ┌──────┐ ┌──────┐            │
    │  │  Req ID  │→│ Logging  │→│ GZip │→│ CORS │            │
    │  └──────────┘ └──────────┘ └──────┘ └──────┘            │
    │                                                         │
    │  Routes:                                                │
    │  /parcels  /tracking  /payments  /create-payment-intent │
    │  /  /health                                             │
    │                                                         │
    │  app.state:                                             │
    │  document_store (SQLDocumentStore) │ payment_gateway    │
    │                                                         │
    │  Exception Handlers:                                    │
    │  Validation→400 │ NotFound→404 │ DB/Gateway/other→500   │
    └─────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → build collaborators → DB ping
    Shutdown: close the document store (dispose engine pool)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import create_engine_from_settings
from app.exceptions import (
    DatabaseError,
    NotFoundError,
    ParcelServerError,
    PaymentGatewayError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, parcels, payments, tracking
from app.services.document_store import SQLDocumentStore
from app.services.gateway_base import PaymentGateway
from app.services.store_base import DocumentStore
from app.services.stripe_service import StripePaymentGateway

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
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
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("stripe").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the shared collaborators on startup and release them on shutdown.

    Collaborators injected through create_app() are used as-is and are not
    closed here; their owner manages them.
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("Parcel Server %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: parcels and tracking still work without Stripe
        logger.error("Configuration error: %s", str(e))

    owned_store: Optional[DocumentStore] = None
    if app.state.document_store is None:
        owned_store = SQLDocumentStore(create_engine_from_settings(settings))
        app.state.document_store = owned_store

    if app.state.payment_gateway is None:
        app.state.payment_gateway = StripePaymentGateway(settings.stripe_secret_key)

    if await app.state.document_store.ping():
        logger.info("Pinged the database. Successfully connected!")
    else:
        logger.error("Database is unreachable; requests will fail until it recovers.")

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Parcel Server shutting down...")
    if owned_store is not None:
        await owned_store.close()
        app.state.document_store = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(exc: ParcelServerError, status_code: int, error: str) -> JSONResponse:
    content = {
        "error": error,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if exc.detail is not None:
        content["details"] = {"error": exc.detail}
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and a single error envelope.

    Handler hierarchy:
        ValidationError          → 400
        RequestValidationError   → 400 (missing/ill-typed body or query fields)
        NotFoundError            → 404
        DatabaseError            → 500
        PaymentGatewayError      → 500
        ParcelServerError (base) → 500
        Exception (fallback)     → 500
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s (%s)", rid, exc.message, exc.detail)
        details = {"error": exc.detail}
        if exc.field:
            details["field"] = exc.field
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": details,
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = [
            {
                "loc": [str(part) for part in error.get("loc", ())],
                "msg": error.get("msg", ""),
                "type": error.get("type", ""),
            }
            for error in exc.errors()
        ]
        # One line per field, e.g. "body.amountInCents: Input should be a valid integer"
        summary = "; ".join(f"{'.'.join(error['loc'])}: {error['msg']}" for error in errors)
        logger.warning("[%s] Invalid request: %s", rid, summary)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": "Invalid request",
                "details": {"error": summary, "errors": errors},
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(exc, 404, "not_found")

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        # Context is logged only, never returned
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(exc, 500, "server_error")

    @app.exception_handler(PaymentGatewayError)
    async def handle_payment_gateway_error(request: Request, exc: PaymentGatewayError):
        logger.error("[%s] Payment gateway error: %s | %s", request_id_var.get(""), exc.message, exc.detail)
        return _error_response(exc, 500, "payment_gateway_error")

    @app.exception_handler(ParcelServerError)
    async def handle_app_error(request: Request, exc: ParcelServerError):
        logger.error("[%s] Application error: %s", request_id_var.get(""), exc.message)
        return _error_response(exc, exc.status_code, exc.error_code)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all so no request ends without a JSON response."""
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred. Please try again later.",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    document_store: Optional[DocumentStore] = None,
    payment_gateway: Optional[PaymentGateway] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        document_store:   Store to use instead of one built from settings
        payment_gateway:  Gateway to use instead of StripePaymentGateway
    """
    app = FastAPI(
        title="Parcel Server API",
        description=(
            "REST backend for a parcel-delivery app: parcels, tracking logs, "
            "payment history and Stripe payment intents."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.document_store = document_store
    app.state.payment_gateway = payment_gateway

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers refuse credentialed requests to a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(parcels.router)
    app.include_router(tracking.router)
    app.include_router(payments.router)
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve `app` with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
