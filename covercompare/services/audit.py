"""
Audit trail for admin actions.

Every persisted change (comparison create/update/delete/import, client and
admin changes, bulk data import) is recorded with the acting admin id and a
JSON ``meta`` payload.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.config import settings
from covercompare.models.database_models import AuditLog

logger = logging.getLogger(__name__)


class AuditService:
    """Writes and reads ``audit_logs`` rows within the caller's DB session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def log_action(
        self,
        actor_id: Optional[str],
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            meta=meta,
        )
        self.db.add(entry)
        await self.db.flush()
        logger.info(
            "Audit: %s %s/%s by %s", action, target_type or "-", target_id or "-", actor_id
        )
        return entry

    async def list_logs(
        self,
        target_id: Optional[str] = None,
        action: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[AuditLog]:
        """Most recent entries first, optionally filtered."""
        stmt = select(AuditLog).order_by(AuditLog.id.desc()).limit(limit or settings.AUDIT_LOG_LIMIT)
        if target_id is not None:
            stmt = stmt.where(AuditLog.target_id == target_id)
        if action is not None:
            stmt = stmt.where(AuditLog.action == action)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
