"""
Audit log endpoints.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.database import get_db
from covercompare.dependencies.auth import get_current_admin
from covercompare.models.database_models import Admin
from covercompare.models.schemas import AuditLogResponse
from covercompare.services.audit import AuditService

router = APIRouter()


@router.get("", response_model=List[AuditLogResponse])
async def list_audit_logs(
    target_id: Optional[str] = None,
    action: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> List[AuditLogResponse]:
    """Most recent audit entries, optionally for one comparison/client/admin."""
    logs = await AuditService(db).list_logs(target_id=target_id, action=action, limit=limit)
    return [AuditLogResponse.model_validate(entry) for entry in logs]
