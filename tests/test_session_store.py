"""Tests for the JSON-file and database session stores."""
import json

import pytest

from covercompare.exceptions import InvariantViolation, SessionNotFound
from covercompare.models.comparison import ComparisonSession
from covercompare.services.session_store import DatabaseSessionStore, LocalSessionStore
from covercompare.services.templates import new_comparison
from tests.conftest import sample_document


def _doc(**overrides) -> ComparisonSession:
    return ComparisonSession.model_validate(sample_document(**overrides))


# ---------------------------------------------------------------------------
# LocalSessionStore
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_local_store_missing_file_reads_sample(tmp_path):
    store = LocalSessionStore(str(tmp_path / "comparisons.json"))
    sessions = await store.list_sessions()
    assert [s.id for s in sessions] == ["1"]
    assert sessions[0].name == "Discovery KeyCare vs Momentum Ingwe"


@pytest.mark.asyncio
async def test_local_store_create_update_delete(tmp_path):
    path = tmp_path / "data" / "comparisons.json"
    store = LocalSessionStore(str(path))

    created = await store.create(_doc())
    assert created.id == "cmp-1"
    assert [s.id for s in await store.list_sessions()] == ["cmp-1", "1"]

    created.name = "Renamed"
    await store.update(created)
    assert (await store.fetch("cmp-1")).name == "Renamed"

    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk[0]["name"] == "Renamed"
    assert on_disk[0]["type"] == "Medical Aid"

    await store.delete("cmp-1")
    assert not await store.exists("cmp-1")
    with pytest.raises(SessionNotFound):
        await store.delete("cmp-1")
    with pytest.raises(SessionNotFound):
        await store.update(created)


@pytest.mark.asyncio
async def test_local_store_rejects_inconsistent_rows(tmp_path):
    store = LocalSessionStore(str(tmp_path / "comparisons.json"))
    bad = _doc()
    bad.categories[0].items[0].values.pop()
    with pytest.raises(InvariantViolation):
        await store.create(bad)


@pytest.mark.asyncio
async def test_local_store_import_replaces_contents(tmp_path):
    store = LocalSessionStore(str(tmp_path / "comparisons.json"))
    await store.create(_doc())
    count = await store.import_sessions([new_comparison(name="A"), new_comparison(name="B")])
    assert count == 2
    assert [s.name for s in await store.list_sessions()] == ["A", "B"]
    assert await store.list_sessions(client_id="anything") == []


# ---------------------------------------------------------------------------
# DatabaseSessionStore
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_database_store_round_trip(db_session):
    store = DatabaseSessionStore(db_session, user_id="admin-1")
    await store.create(_doc())

    fetched = await store.fetch("cmp-1")
    assert fetched == _doc()

    fetched.providers[1].plan = "Ingwe Plus"
    await store.update(fetched)
    assert (await store.fetch("cmp-1")).providers[1].plan == "Ingwe Plus"

    await store.delete("cmp-1")
    with pytest.raises(SessionNotFound):
        await store.fetch("cmp-1")


@pytest.mark.asyncio
async def test_database_store_import_assigns_fresh_ids(db_session):
    store = DatabaseSessionStore(db_session)
    await store.create(_doc())
    count = await store.import_sessions([_doc(), _doc(name="Second")])

    sessions = await store.list_sessions()
    assert count == 2
    assert len(sessions) == 3
    assert len({s.id for s in sessions}) == 3
