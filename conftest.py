"""Root conftest for pytest configuration.

Loaded before the colocated tests under usagekit/, so the environment below
is in place before ``usagekit.core.config`` builds its settings singleton.
"""

import os

import pytest_asyncio

# ---------------------------------------------------------------------------
# Environment variables: must be set before any usagekit module import.
# Uses setdefault so real env vars (CI) are never overridden.
# ---------------------------------------------------------------------------
os.environ.setdefault("USAGEKIT_ENVIRONMENT", "test")
os.environ.setdefault("USAGEKIT_STORAGE_BACKEND", "memory")
os.environ.setdefault("USAGEKIT_POSTGRES_HOST", "localhost")
os.environ.setdefault("USAGEKIT_POSTGRES_USER", "test_user")
os.environ.setdefault("USAGEKIT_POSTGRES_PASSWORD", "test_password")
os.environ.setdefault("USAGEKIT_POSTGRES_DB", "test_db")
os.environ.setdefault("USAGEKIT_LEDGER_RETRY_MAX_WAIT_SECONDS", "0")


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh file-backed SQLite database with all tables."""
    from sqlalchemy.ext.asyncio import create_async_engine

    from usagekit.db.session import create_session_factory, init_db

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'usagekit.db'}")
    await init_db(engine)
    yield create_session_factory(engine)
    await engine.dispose()
