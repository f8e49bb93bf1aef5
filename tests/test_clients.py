"""Tests for client CRUD and search."""
import pytest
from httpx import AsyncClient

from tests.conftest import AUTH_HEADERS


async def _create_client(client: AsyncClient, **profile) -> dict:
    resp = await client.post("/api/clients", json=profile, headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_create_client_returns_templated_comparison(client: AsyncClient):
    data = await _create_client(
        client, member_name="Thandi", surname="Nkosi", id_number="8001015009087", age="45"
    )
    assert data["client"]["member_name"] == "Thandi"
    assert data["client"]["age"] == "45"
    assert data["client"]["id"]

    comparison = data["comparison"]
    assert comparison["name"] == "Thandi Nkosi - Comparison"
    assert comparison["client_profile"]["id_number"] == "8001015009087"
    assert len(comparison["providers"]) == 2
    assert len(comparison["categories"]) == 3

    # the template is not stored until the console saves it
    resp = await client.get("/api/comparisons", headers=AUTH_HEADERS)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_search_clients(client: AsyncClient):
    await _create_client(client, member_name="Thandi", surname="Nkosi")
    await _create_client(client, member_name="Ernie", surname="Smith", id_number="7505055009081")

    resp = await client.get("/api/clients", params={"search": "nkos"}, headers=AUTH_HEADERS)
    assert [c["member_name"] for c in resp.json()] == ["Thandi"]

    resp = await client.get("/api/clients", params={"search": "750505"}, headers=AUTH_HEADERS)
    assert [c["member_name"] for c in resp.json()] == ["Ernie"]

    resp = await client.get("/api/clients", headers=AUTH_HEADERS)
    assert len(resp.json()) == 2


@pytest.mark.asyncio
async def test_get_and_delete_client(client: AsyncClient):
    created = await _create_client(client, member_name="Ernie")
    client_id = created["client"]["id"]

    resp = await client.get(f"/api/clients/{client_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 200
    assert resp.json()["member_name"] == "Ernie"

    resp = await client.delete(f"/api/clients/{client_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 204

    resp = await client.get(f"/api/clients/{client_id}", headers=AUTH_HEADERS)
    assert resp.status_code == 404
