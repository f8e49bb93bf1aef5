"""
Bulk export / import of everything the console stores.

Export returns every comparison (from the active session store) and every
client.  Import validates each document's row/provider invariant before
anything is written: one malformed session rejects the whole payload.
"""
import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.config import settings
from covercompare.database import get_db
from covercompare.dependencies.auth import get_session_store, get_super_admin
from covercompare.exceptions import InvariantViolation, MalformedImport
from covercompare.models.database_models import Admin, Client
from covercompare.models.schemas import (
    ClientResponse,
    DataExportResponse,
    DataImportRequest,
    DataImportResponse,
)
from covercompare.services.audit import AuditService
from covercompare.services.document_model import check_invariants

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/export", response_model=DataExportResponse)
async def export_data(
    admin: Admin = Depends(get_super_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> DataExportResponse:
    """Dump all comparisons and clients."""
    sessions = await store.list_sessions()
    result = await db.execute(select(Client).order_by(Client.created_at.desc(), Client.id))
    clients = [ClientResponse.model_validate(c) for c in result.scalars().all()]
    logger.info("Exported %d comparisons and %d clients", len(sessions), len(clients))
    return DataExportResponse(
        data_source=settings.DATA_SOURCE,
        exported_at=datetime.now(timezone.utc),
        sessions=sessions,
        clients=clients,
    )


@router.post("/import", response_model=DataImportResponse)
async def import_data(
    body: DataImportRequest,
    admin: Admin = Depends(get_super_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> DataImportResponse:
    """
    Load comparisons and clients.

    The database store inserts every session under a new id; the local
    store replaces its file with the imported sessions.
    """
    for idx, session in enumerate(body.sessions):
        try:
            check_invariants(session)
        except InvariantViolation as exc:
            raise MalformedImport(str(exc), f"sessions[{idx}]") from exc

    session_count = await store.import_sessions(body.sessions)

    for profile in body.clients:
        db.add(Client(id=uuid.uuid4().hex, created_by=admin.id, **profile.model_dump()))
    await db.flush()

    await AuditService(db).log_action(
        admin.id, "data_import", "data", None,
        {"sessions": session_count, "clients": len(body.clients)},
    )
    logger.info("Imported %d comparisons and %d clients", session_count, len(body.clients))
    return DataImportResponse(sessions=session_count, clients=len(body.clients))
