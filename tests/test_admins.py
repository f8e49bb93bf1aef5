"""Tests for admin provisioning, invites and removal."""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, NON_ADMIN_HEADERS, SUPER_ADMIN_ID


@pytest.mark.asyncio
async def test_super_admin_provisioned_on_first_request(client: AsyncClient):
    resp = await client.get("/api/admins/me", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == SUPER_ADMIN_ID
    assert data["role"] == "super_admin"
    assert data["email"] == "owner@example.com"


@pytest.mark.asyncio
async def test_invite_and_list(client: AsyncClient, admin_headers: dict):
    resp = await client.get("/api/admins", headers=admin_headers)
    assert resp.status_code == 200
    roles = {a["email"]: a["role"] for a in resp.json()}
    assert roles == {"owner@example.com": "super_admin", "broker@example.com": "admin"}


@pytest.mark.asyncio
async def test_invite_normalises_email_and_rejects_duplicates(client: AsyncClient):
    resp = await client.post(
        "/api/admins/invite", json={"email": "New@Example.com"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 201
    assert resp.json()["email"] == "new@example.com"

    resp = await client.post(
        "/api/admins/invite", json={"email": "new@example.com"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_invite_rejects_bad_email(client: AsyncClient):
    resp = await client.post(
        "/api/admins/invite", json={"email": "not-an-email"}, headers=AUTH_HEADERS
    )
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_regular_admin_cannot_invite_or_remove(client: AsyncClient, admin_headers: dict):
    resp = await client.post(
        "/api/admins/invite", json={"email": "other@example.com"}, headers=admin_headers
    )
    assert resp.status_code == 403

    resp = await client.delete(f"/api/admins/{SUPER_ADMIN_ID}", headers=admin_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_remove_admin(client: AsyncClient, admin_headers: dict):
    admin_id = admin_headers["X-User-Id"]
    resp = await client.delete(f"/api/admins/{admin_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 204

    # the removed admin loses access
    resp = await client.get("/api/admins/me", headers=admin_headers)
    assert resp.status_code == 403

    resp = await client.delete(f"/api/admins/{admin_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_cannot_remove_self(client: AsyncClient):
    resp = await client.delete(f"/api/admins/{SUPER_ADMIN_ID}", headers=AUTH_HEADERS)
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_non_admin_is_forbidden(client: AsyncClient):
    resp = await client.get("/api/admins", headers=NON_ADMIN_HEADERS)
    assert resp.status_code == 403
