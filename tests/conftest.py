"""Pytest configuration shared across the suite."""

import _bootstrap  # noqa: F401

from pathlib import Path

import pytest
from sqlalchemy import create_engine

from workspace_auth.clients.user_store import SQLUserRecordStore
from workspace_auth.core.config import GoogleSettings


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


@pytest.fixture
def google_settings() -> GoogleSettings:
    return GoogleSettings(
        GOOGLE_CLIENT_ID="client",
        GOOGLE_CLIENT_SECRET="secret",
        GOOGLE_REDIRECT_URI="https://example.com/callback",
    )


@pytest.fixture
def sqlite_store(tmp_path: Path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'users.db'}",
        connect_args={"check_same_thread": False},
    )
    store = SQLUserRecordStore(engine)
    store.ensure_schema()
    yield store
    store.dispose()
