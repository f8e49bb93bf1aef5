"""
Shared fixtures for Cover Compare backend tests.

Each test gets its own SQLite database file (aiosqlite) with every table
created from the ORM metadata, so no external database is needed.  The
FastAPI ``get_db`` dependency is overridden to use the per-test session and
open drafts are cleared between tests.
"""
from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

# Override settings *before* any application module is imported, so that
# the global settings object and engine never point at Postgres.
SUPER_ADMIN_ID = "super-admin-1"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test_cover_compare.db"
os.environ["SUPER_ADMIN_IDS"] = SUPER_ADMIN_ID
os.environ["DATA_SOURCE"] = "database"
os.environ["OLLAMA_BASE_URL"] = "http://ollama.invalid:11434"

from covercompare.database import Base, get_db  # noqa: E402
from covercompare.main import app  # noqa: E402
from covercompare.models import database_models  # noqa: E402,F401
from covercompare.services.edit_sessions import edit_sessions  # noqa: E402


# ---------------------------------------------------------------------------
# Per-test fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on a fresh SQLite database for each test."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False,
        poolclass=NullPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    await engine.dispose()


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx AsyncClient wired to the FastAPI app with the DB dependency
    overridden to use the per-test session.
    """

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def _clear_drafts():
    edit_sessions.clear()
    yield
    edit_sessions.clear()


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient) -> dict:
    """Headers of a regular (non-super) admin invited by the super admin."""
    resp = await client.post(
        "/api/admins/invite",
        json={"email": "broker@example.com"},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201
    return {"X-User-Id": resp.json()["id"], "X-User-Email": "broker@example.com"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

AUTH_HEADERS = {
    "X-User-Id": SUPER_ADMIN_ID,
    "X-User-Email": "owner@example.com",
}

NON_ADMIN_HEADERS = {
    "X-User-Id": "stranger-1",
    "X-User-Email": "stranger@example.com",
}


def sample_document(**overrides) -> dict:
    """A valid two-provider comparison body."""
    body = {
        "id": "cmp-1",
        "name": "Ernie - Comparison",
        "date": "2025-01-20",
        "type": "Medical Aid",
        "client_profile": {"member_name": "Ernie", "region": "Gauteng"},
        "providers": [
            {"underwriter": "Discovery Health", "plan": "KeyCare"},
            {"underwriter": "Momentum", "plan": "Ingwe"},
        ],
        "categories": [
            {
                "title": "Hospital Benefits",
                "items": [
                    {"label": "Premium", "values": ["R4 968", "R5 189"]},
                    {"label": "Cover", "values": ["Unlimited", "Unlimited"]},
                ],
            },
            {
                "title": "Day-to-Day Benefits",
                "items": [{"label": "GP Visits", "values": ["Unlimited", "10 visits"]}],
            },
        ],
    }
    body.update(overrides)
    return body
