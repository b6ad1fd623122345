"""
FastAPI application entrypoint for the Google account-linking service.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from workspace_auth.api.routes import router as api_router
from workspace_auth.core.config import get_settings
from workspace_auth.core.logging import configure_logging
from workspace_auth.dependencies import get_user_record_store


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the user table on startup and release pooled connections on shutdown."""
    store = get_user_record_store()
    store.ensure_schema()
    try:
        yield
    finally:
        store.dispose()


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Bot Workspace Google Auth",
        version="0.1.0",
        description="Links messaging-bot users to Google accounts via OAuth2.",
        lifespan=lifespan,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
