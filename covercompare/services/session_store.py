"""
Comparison session store.

Two interchangeable backends behind the same async interface:

* ``DatabaseSessionStore`` — SQLAlchemy, one row per comparison with the
  document body in JSON columns.
* ``LocalSessionStore`` — a single JSON file, used when no database is
  configured.  An absent file reads as the built-in sample comparison.

The store is chosen from configuration by the ``get_session_store``
dependency; nothing else in the application knows which one is active.
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

import aiofiles
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.exceptions import SessionNotFound
from covercompare.models.comparison import ComparisonSession
from covercompare.models.database_models import ComparisonSessionRecord
from covercompare.services.document_model import check_invariants
from covercompare.services.templates import new_session_id, sample_comparisons

logger = logging.getLogger(__name__)


def record_to_session(record: ComparisonSessionRecord) -> ComparisonSession:
    """Map a database row to the document shape."""
    return ComparisonSession.model_validate(
        {
            "id": record.id,
            "name": record.name,
            "date": record.date,
            "type": record.type,
            "client_profile": record.client_profile or {},
            "providers": record.providers or [],
            "categories": record.categories or [],
            "report_title_override": record.report_title_override,
        }
    )


def _document_columns(session: ComparisonSession) -> Dict[str, Any]:
    body = session.model_dump(mode="json")
    return {
        "name": body["name"],
        "date": body["date"],
        "type": body["type"],
        "client_profile": body["client_profile"],
        "providers": body["providers"],
        "categories": body["categories"],
        "report_title_override": body["report_title_override"],
    }


class DatabaseSessionStore:
    """Session store backed by the ``comparison_sessions`` table."""

    def __init__(self, db: AsyncSession, user_id: Optional[str] = None) -> None:
        self.db = db
        self.user_id = user_id

    async def list_sessions(self, client_id: Optional[str] = None) -> List[ComparisonSession]:
        """All comparisons, newest first; optionally only one client's."""
        stmt = select(ComparisonSessionRecord).order_by(
            ComparisonSessionRecord.created_at.desc(),
            ComparisonSessionRecord.id,
        )
        if client_id is not None:
            stmt = stmt.where(ComparisonSessionRecord.client_id == client_id)
        result = await self.db.execute(stmt)
        return [record_to_session(r) for r in result.scalars().all()]

    async def fetch(self, session_id: str) -> ComparisonSession:
        return record_to_session(await self._get_record(session_id))

    async def exists(self, session_id: str) -> bool:
        return await self.db.get(ComparisonSessionRecord, session_id) is not None

    async def create(
        self,
        session: ComparisonSession,
        client_id: Optional[str] = None,
    ) -> ComparisonSession:
        check_invariants(session)
        session_id = session.id or new_session_id()
        record = ComparisonSessionRecord(
            id=session_id,
            created_by=self.user_id,
            client_id=client_id,
            **_document_columns(session),
        )
        self.db.add(record)
        await self.db.flush()
        logger.info("Created comparison id=%s name=%r", record.id, record.name)
        return record_to_session(record)

    async def update(self, session: ComparisonSession) -> ComparisonSession:
        check_invariants(session)
        record = await self._get_record(session.id)
        for column, value in _document_columns(session).items():
            setattr(record, column, value)
        await self.db.flush()
        logger.info("Updated comparison id=%s", record.id)
        return session.model_copy(deep=True)

    async def delete(self, session_id: str) -> None:
        record = await self._get_record(session_id)
        await self.db.delete(record)
        await self.db.flush()
        logger.info("Deleted comparison id=%s", session_id)

    async def import_sessions(self, sessions: List[ComparisonSession]) -> int:
        """Insert every session under a fresh id; returns the count."""
        for session in sessions:
            await self.create(session.model_copy(update={"id": new_session_id()}))
        return len(sessions)

    async def _get_record(self, session_id: str) -> ComparisonSessionRecord:
        record = await self.db.get(ComparisonSessionRecord, session_id)
        if record is None:
            raise SessionNotFound(session_id)
        return record


class LocalSessionStore:
    """
    Session store kept in one JSON file.

    The whole file is read and rewritten on every change; a lock serialises
    writers within the process.
    """

    _locks: Dict[str, asyncio.Lock] = {}

    def __init__(self, path: str) -> None:
        self.path = os.path.abspath(path)
        self._lock = self._locks.setdefault(self.path, asyncio.Lock())

    async def _read(self) -> List[ComparisonSession]:
        if not os.path.exists(self.path):
            return sample_comparisons()
        async with aiofiles.open(self.path, "r", encoding="utf-8") as fh:
            raw = await fh.read()
        return [ComparisonSession.model_validate(item) for item in json.loads(raw or "[]")]

    async def _write(self, sessions: List[ComparisonSession]) -> None:
        os.makedirs(os.path.dirname(self.path), exist_ok=True)
        payload = json.dumps(
            [s.model_dump(mode="json") for s in sessions],
            ensure_ascii=False,
            indent=2,
        )
        async with aiofiles.open(self.path, "w", encoding="utf-8") as fh:
            await fh.write(payload)

    async def list_sessions(self, client_id: Optional[str] = None) -> List[ComparisonSession]:
        # Local documents are not linked to clients.
        if client_id is not None:
            return []
        return await self._read()

    async def fetch(self, session_id: str) -> ComparisonSession:
        for session in await self._read():
            if session.id == session_id:
                return session
        raise SessionNotFound(session_id)

    async def exists(self, session_id: str) -> bool:
        return any(s.id == session_id for s in await self._read())

    async def create(
        self,
        session: ComparisonSession,
        client_id: Optional[str] = None,
    ) -> ComparisonSession:
        check_invariants(session)
        created = session.model_copy(update={"id": session.id or new_session_id()}, deep=True)
        async with self._lock:
            sessions = await self._read()
            sessions.insert(0, created)
            await self._write(sessions)
        logger.info("Created local comparison id=%s name=%r", created.id, created.name)
        return created.model_copy(deep=True)

    async def update(self, session: ComparisonSession) -> ComparisonSession:
        check_invariants(session)
        async with self._lock:
            sessions = await self._read()
            for idx, existing in enumerate(sessions):
                if existing.id == session.id:
                    sessions[idx] = session.model_copy(deep=True)
                    break
            else:
                raise SessionNotFound(session.id)
            await self._write(sessions)
        logger.info("Updated local comparison id=%s", session.id)
        return session.model_copy(deep=True)

    async def delete(self, session_id: str) -> None:
        async with self._lock:
            sessions = await self._read()
            remaining = [s for s in sessions if s.id != session_id]
            if len(remaining) == len(sessions):
                raise SessionNotFound(session_id)
            await self._write(remaining)
        logger.info("Deleted local comparison id=%s", session_id)

    async def import_sessions(self, sessions: List[ComparisonSession]) -> int:
        """Replace the file contents with *sessions*; returns the count."""
        for session in sessions:
            check_invariants(session)
        async with self._lock:
            await self._write([s.model_copy(deep=True) for s in sessions])
        return len(sessions)
