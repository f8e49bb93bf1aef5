"""Tests for bulk data export and import."""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS, sample_document


@pytest.mark.asyncio
async def test_export_contains_sessions_and_clients(client: AsyncClient):
    await client.post("/api/comparisons", json=sample_document(), headers=AUTH_HEADERS)
    await client.post("/api/clients", json={"member_name": "Ernie"}, headers=AUTH_HEADERS)

    resp = await client.get("/api/data/export", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    data = resp.json()
    assert data["data_source"] == "database"
    assert [s["id"] for s in data["sessions"]] == ["cmp-1"]
    assert [c["member_name"] for c in data["clients"]] == ["Ernie"]


@pytest.mark.asyncio
async def test_import_loads_sessions_and_clients(client: AsyncClient):
    payload = {
        "sessions": [sample_document(), sample_document(name="Copy")],
        "clients": [{"member_name": "Thandi"}],
    }
    resp = await client.post("/api/data/import", json=payload, headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json() == {"sessions": 2, "clients": 1}

    resp = await client.get("/api/comparisons", headers=AUTH_HEADERS)
    assert sorted(c["name"] for c in resp.json()) == ["Copy", "Ernie - Comparison"]

    resp = await client.get("/api/clients", headers=AUTH_HEADERS)
    assert [c["member_name"] for c in resp.json()] == ["Thandi"]


@pytest.mark.asyncio
async def test_import_rejects_inconsistent_session(client: AsyncClient):
    bad = sample_document()
    bad["categories"][1]["items"][0]["values"] = ["one", "two", "three"]
    payload = {"sessions": [sample_document(), bad]}

    resp = await client.post("/api/data/import", json=payload, headers=AUTH_HEADERS)
    assert resp.status_code == 422
    assert resp.json()["path"] == "sessions[1]"

    resp = await client.get("/api/comparisons", headers=AUTH_HEADERS)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_data_endpoints_need_super_admin(client: AsyncClient, admin_headers: dict):
    resp = await client.get("/api/data/export", headers=admin_headers)
    assert resp.status_code == 403
    resp = await client.post("/api/data/import", json={}, headers=admin_headers)
    assert resp.status_code == 403
