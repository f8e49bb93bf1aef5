"""
Authentication dependencies for FastAPI routes.

Extracts the caller's identity from the X-User-Id header (set by the admin
console after sign-in) and resolves it to an admin account.  Every route
except the health check requires an admin.
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.config import settings
from covercompare.database import get_db
from covercompare.models.database_models import Admin, AdminRole
from covercompare.services.access_control import AccessControlService
from covercompare.services.session_store import DatabaseSessionStore, LocalSessionStore

logger = logging.getLogger(__name__)


async def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id"),
) -> str:
    """Extract the authenticated user ID from the request header. Raises 401 if empty."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return x_user_id


async def get_current_admin(
    user_id: str = Depends(get_current_user_id),
    x_user_email: Optional[str] = Header(None, alias="X-User-Email"),
    db: AsyncSession = Depends(get_db),
) -> Admin:
    """Resolve the caller to an admin account. Raises 403 for non-admins."""
    admin = await AccessControlService(db).resolve_admin(user_id, x_user_email)
    if admin is None:
        logger.warning("Rejected non-admin user id=%s", user_id)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required.",
        )
    return admin


async def get_super_admin(admin: Admin = Depends(get_current_admin)) -> Admin:
    """Like get_current_admin, but only for super admins."""
    if admin.role != AdminRole.SUPER_ADMIN.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Super admin access required.",
        )
    return admin


async def get_session_store(
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Session store for the configured DATA_SOURCE."""
    if settings.DATA_SOURCE == "local":
        return LocalSessionStore(settings.LOCAL_STORE_PATH)
    return DatabaseSessionStore(db, user_id=admin.id)
