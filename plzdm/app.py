"""FastAPI application factory — entry point for the plzdm API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from plzdm.config import get_settings
from plzdm.errors import (
    DispatchError,
    MessageValidationError,
    PlzdmError,
    RateLimitError,
    ValidationError,
)
from plzdm.routers import auth, billing, messages, webhooks
from plzdm.utils import now_utc, setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # Auto-create tables for SQLite (dev mode); PostgreSQL uses Alembic
    from plzdm.db.session import engine
    from plzdm.models import Base

    settings = get_settings()
    if settings.database_url.startswith("sqlite"):
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    from plzdm.http_client import close_http_client, init_http_client
    await init_http_client()

    yield

    await close_http_client()
    await engine.dispose()


def error_response(exc: PlzdmError) -> JSONResponse:
    """Translate a plzdm error into a status code plus a human-readable message."""
    error: dict = {"statusCode": exc.status_code, "message": exc.message}
    headers = {}

    if isinstance(exc, MessageValidationError):
        error["fields"] = exc.errors
    elif isinstance(exc, ValidationError):
        error["fields"] = {exc.field: exc.message}
    elif isinstance(exc, RateLimitError) and exc.reset_at:
        error["resetAt"] = exc.reset_at.isoformat()
        headers["Retry-After"] = str(max(0, int((exc.reset_at - now_utc()).total_seconds())))

    return JSONResponse({"error": error}, status_code=exc.status_code, headers=headers)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(verbose=settings.debug)

    app = FastAPI(
        title=settings.app_name,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url=None,
    )
    app.state.settings = settings

    # --- Error handlers ---
    @app.exception_handler(PlzdmError)
    async def plzdm_error_handler(request: Request, exc: PlzdmError):
        if isinstance(exc, ValidationError):
            logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        elif isinstance(exc, DispatchError):
            logger.warning("Dispatch failed on %s: %s", request.url.path, exc)
        else:
            logger.error("Request %s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return error_response(exc)

    # --- Routers ---
    app.include_router(auth.router)
    app.include_router(billing.router)
    app.include_router(messages.router)
    app.include_router(webhooks.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
