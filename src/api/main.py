"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers and lifespan events.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.memory import (
    InMemoryCredentialStore,
    InMemoryIdentityDatabase,
    InMemoryPendingRegistrationStore,
)
from src.adapters.repository.postgres import (
    PostgresCredentialStore,
    PostgresPendingRegistrationStore,
    run_migrations,
)
from src.adapters.smtp.console import ConsoleNotificationGateway
from src.adapters.smtp.gateway import SmtpNotificationGateway
from src.api.models import FlowResponse
from src.api.v1 import FAILURE_REDIRECTS
from src.api.v1 import router as v1_router
from src.api.v1.routes import MISSING_FIELDS_MESSAGE
from src.config.settings import Settings, get_settings
from src.domain.exceptions import StorageError
from src.domain.security import BcryptSecretHasher, SecureTokenGenerator

logger = logging.getLogger(__name__)

API_PREFIX = "/v1"

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "v1",
        "description": "Identity Lifecycle API v1 - Register, verify, log in and reset passwords",
    },
]


def _build_notifier(settings: Settings) -> ConsoleNotificationGateway | SmtpNotificationGateway:
    if settings.notification_backend == "smtp":
        return SmtpNotificationGateway(settings)
    return ConsoleNotificationGateway()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates the stores (database connection pool and migrations for postgres)
    - Creates the hasher, token generator and notification gateway
    - Closes the connection pool on shutdown
    """
    settings: Settings = app.state.settings
    logging.basicConfig(level=settings.log_level.upper())

    logger.info("Starting application...")

    pool: ConnectionPool | None = None
    if settings.storage_backend == "postgres":
        logger.info("Connecting to database...")
        pool = ConnectionPool(
            conninfo=settings.database_url,
            min_size=settings.pool_min_size,
            max_size=settings.pool_max_size,
        )

        logger.info("Running database migrations...")
        run_migrations(pool)

        app.state.pending_store = PostgresPendingRegistrationStore(pool)
        app.state.credential_store = PostgresCredentialStore(pool)
    else:
        logger.warning("Using in-memory storage; data is lost on shutdown")
        database = InMemoryIdentityDatabase()
        app.state.pending_store = InMemoryPendingRegistrationStore(database)
        app.state.credential_store = InMemoryCredentialStore(database)

    app.state.pool = pool
    app.state.hasher = BcryptSecretHasher(rounds=settings.bcrypt_cost)
    app.state.token_generator = SecureTokenGenerator(nbytes=settings.token_bytes)
    app.state.notifier = _build_notifier(settings)

    logger.info("Application startup complete")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    if pool is not None:
        pool.close()
        logger.info("Database connection pool closed")


def _failure_redirect(path: str) -> str:
    route = path.removeprefix(API_PREFIX).lstrip("/").split("/", 1)[0]
    return FAILURE_REDIRECTS.get(f"/{route}", "/")


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed or incomplete form submissions with a corrective message."""
    body = FlowResponse(
        status="error",
        message=MISSING_FIELDS_MESSAGE,
        redirect=_failure_redirect(request.url.path),
    )
    return JSONResponse(status_code=200, content=body.model_dump())


async def storage_exception_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Log storage failures; the client only learns that something went wrong."""
    logger.error("Storage failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


async def unexpected_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration to run with; defaults to the environment
    """
    application = FastAPI(
        title="identity-lifecycle",
        description="Identity Lifecycle API - two-phase registration, login and password reset",
        version="0.1.0",
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )
    application.state.settings = settings or get_settings()

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(StorageError, storage_exception_handler)
    application.add_exception_handler(Exception, unexpected_exception_handler)

    # Include v1 API routes
    application.include_router(v1_router, prefix=API_PREFIX)

    @application.get("/health")
    def health_check(request: Request) -> dict[str, str]:
        """
        Health check endpoint with database validation.

        Returns 200 OK if application and database are healthy.
        """
        pool = request.app.state.pool
        if pool is not None:
            with pool.connection() as conn:
                conn.execute("SELECT 1")

        return {"status": "healthy"}

    return application


app = create_app()
