"""
Client endpoints.

A client is a stored profile; creating one also returns a templated
comparison document for it, which the console saves once the broker has
filled it in.
"""
import logging
import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.database import get_db
from covercompare.dependencies.auth import get_current_admin
from covercompare.models.comparison import ClientProfile
from covercompare.models.database_models import Admin, Client
from covercompare.models.schemas import (
    ClientCreateRequest,
    ClientCreateResponse,
    ClientResponse,
    ComparisonResponse,
)
from covercompare.services.audit import AuditService
from covercompare.services.templates import new_comparison

logger = logging.getLogger(__name__)

router = APIRouter()


def client_profile(client: Client) -> ClientProfile:
    """Profile fields of a stored client."""
    return ClientProfile(**{field: getattr(client, field) or "" for field in ClientProfile.model_fields})


async def _get_client(db: AsyncSession, client_id: str) -> Client:
    client = await db.get(Client, client_id)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Client {client_id} not found.",
        )
    return client


@router.post("", response_model=ClientCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    body: ClientCreateRequest,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> ClientCreateResponse:
    """Store a client and return a blank comparison templated from its profile."""
    profile = ClientProfile(**body.model_dump())
    client = Client(id=uuid.uuid4().hex, created_by=admin.id, **profile.model_dump())
    db.add(client)
    await db.flush()
    await db.refresh(client)

    await AuditService(db).log_action(
        admin.id, "client_create", "client", client.id, {"new": profile.model_dump()}
    )
    logger.info("Created client id=%s for admin=%s", client.id, admin.id)

    return ClientCreateResponse(
        client=ClientResponse.model_validate(client),
        comparison=ComparisonResponse.from_session(new_comparison(profile=profile)),
    )


@router.get("", response_model=List[ClientResponse])
async def list_clients(
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> List[ClientResponse]:
    """List clients, newest first; ``search`` matches name, surname or ID number."""
    stmt = select(Client).order_by(Client.created_at.desc(), Client.id)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Client.member_name.ilike(pattern),
                Client.surname.ilike(pattern),
                Client.id_number.ilike(pattern),
            )
        )
    result = await db.execute(stmt.offset(skip).limit(limit))
    return [ClientResponse.model_validate(c) for c in result.scalars().all()]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> ClientResponse:
    """Get one client."""
    return ClientResponse.model_validate(await _get_client(db, client_id))


@router.delete(
    "/{client_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def delete_client(
    client_id: str,
    admin: Admin = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a client.  Its comparisons are kept and unlinked."""
    client = await _get_client(db, client_id)
    old = client_profile(client).model_dump()
    await db.delete(client)
    await db.flush()
    await AuditService(db).log_action(admin.id, "client_delete", "client", client_id, {"old": old})
    logger.info("Deleted client id=%s", client_id)
