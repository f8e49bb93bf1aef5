"""
Admin management endpoints.

Listing is open to every admin; invite and removal are limited to super
admins by AccessControlService.
"""
import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.database import get_db
from covercompare.dependencies.auth import get_current_admin
from covercompare.models.database_models import Admin
from covercompare.models.schemas import AdminInviteRequest, AdminResponse
from covercompare.services.access_control import AccessControlService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[AdminResponse])
async def list_admins(
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> List[AdminResponse]:
    """List all admins, newest first."""
    admins = await AccessControlService(db).list_admins()
    return [AdminResponse.model_validate(a) for a in admins]


@router.get("/me", response_model=AdminResponse)
async def get_me(admin: Admin = Depends(get_current_admin)) -> AdminResponse:
    """The calling admin's own account."""
    return AdminResponse.model_validate(admin)


@router.post("/invite", response_model=AdminResponse, status_code=status.HTTP_201_CREATED)
async def invite_admin(
    body: AdminInviteRequest,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> AdminResponse:
    """Invite a new admin by email (super admins only)."""
    invited = await AccessControlService(db).invite_admin(admin, body.email)
    return AdminResponse.model_validate(invited)


@router.delete(
    "/{admin_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def remove_admin(
    admin_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Remove an admin (super admins only, never yourself)."""
    await AccessControlService(db).remove_admin(admin, admin_id)
