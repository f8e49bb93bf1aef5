"""Tests for authentication boundaries.

Every route except health and root needs an X-User-Id that resolves to an
admin account.
"""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, NON_ADMIN_HEADERS, sample_document


@pytest.mark.asyncio
async def test_comparisons_requires_auth_header(client: AsyncClient):
    """GET /api/comparisons without X-User-Id should return 422 (missing required header)."""
    resp = await client.get("/api/comparisons")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_create_comparison_requires_auth_header(client: AsyncClient):
    resp = await client.post("/api/comparisons", json=sample_document())
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_non_admin_cannot_read_comparisons(client: AsyncClient):
    await client.post("/api/comparisons", json=sample_document(), headers=AUTH_HEADERS)
    resp = await client.get("/api/comparisons/cmp-1", headers=NON_ADMIN_HEADERS)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_non_admin_cannot_open_drafts(client: AsyncClient):
    await client.post("/api/comparisons", json=sample_document(), headers=AUTH_HEADERS)
    resp = await client.post("/api/comparisons/cmp-1/edit", headers=NON_ADMIN_HEADERS)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_non_admin_cannot_create_clients(client: AsyncClient):
    resp = await client.post(
        "/api/clients", json={"member_name": "Ernie"}, headers=NON_ADMIN_HEADERS
    )
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_health_is_public(client: AsyncClient):
    resp = await client.get("/api/health/")
    assert resp.status_code == 200
