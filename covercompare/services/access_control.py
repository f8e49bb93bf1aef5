"""
Admin access control.

Admins are identified by the auth provider's user id.  Only a
``super_admin`` may invite or remove admins, and nobody may remove their
own account.  Both operations are written to the audit trail.
"""
import logging
import uuid
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.config import settings
from covercompare.exceptions import AdminConflict, AdminNotFound, PermissionDenied
from covercompare.models.database_models import Admin, AdminRole
from covercompare.services.audit import AuditService

logger = logging.getLogger(__name__)


class AccessControlService:
    """Admin lookup, provisioning, invite and removal."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db
        self.audit = AuditService(db)

    async def get_admin(self, admin_id: str) -> Optional[Admin]:
        return await self.db.get(Admin, admin_id)

    async def resolve_admin(self, user_id: str, email: Optional[str] = None) -> Optional[Admin]:
        """
        Return the admin row for *user_id*.

        Ids listed in SUPER_ADMIN_IDS get a ``super_admin`` row created on
        their first request; any other unknown id resolves to None.
        """
        admin = await self.get_admin(user_id)
        if admin is not None or user_id not in settings.get_super_admin_ids():
            return admin

        admin = Admin(
            id=user_id,
            email=email or f"{user_id}@covercompare.local",
            role=AdminRole.SUPER_ADMIN.value,
        )
        self.db.add(admin)
        await self.db.flush()
        await self.db.refresh(admin)
        logger.info("Provisioned super admin id=%s email=%s", user_id, admin.email)
        return admin

    async def list_admins(self) -> List[Admin]:
        result = await self.db.execute(select(Admin).order_by(Admin.created_at.desc(), Admin.email))
        return list(result.scalars().all())

    async def invite_admin(self, actor: Admin, email: str) -> Admin:
        """Create an ``admin`` account for *email*.  Super admins only."""
        self._require_super_admin(actor)
        email = email.strip().lower()

        existing = await self.db.execute(select(Admin).where(Admin.email == email))
        if existing.scalar_one_or_none() is not None:
            raise AdminConflict(f"An admin with email {email!r} already exists.")

        admin = Admin(id=uuid.uuid4().hex, email=email, role=AdminRole.ADMIN.value)
        self.db.add(admin)
        await self.db.flush()
        await self.db.refresh(admin)
        await self.audit.log_action(
            actor.id, "admin_invite", "admin", admin.id, {"email": email}
        )
        logger.info("Admin %s invited %s (id=%s)", actor.id, email, admin.id)
        return admin

    async def remove_admin(self, actor: Admin, admin_id: str) -> None:
        """Delete the admin *admin_id*.  Super admins only, never oneself."""
        self._require_super_admin(actor)
        if admin_id == actor.id:
            raise AdminConflict("You cannot remove your own admin account.")

        admin = await self.get_admin(admin_id)
        if admin is None:
            raise AdminNotFound(f"Admin {admin_id!r} not found.")

        email = admin.email
        await self.db.delete(admin)
        await self.db.flush()
        await self.audit.log_action(
            actor.id, "admin_remove", "admin", admin_id, {"email": email}
        )
        logger.info("Admin %s removed %s (id=%s)", actor.id, email, admin_id)

    @staticmethod
    def _require_super_admin(actor: Admin) -> None:
        if actor.role != AdminRole.SUPER_ADMIN.value:
            raise PermissionDenied("Only a super admin can manage admins.")
