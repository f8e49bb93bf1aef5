"""
Comparison session endpoints.

CRUD over the configured session store plus the draft lifecycle: an admin
opens a draft, applies edit operations to it, then commits (persist + audit)
or discards it.

Route summary
-------------
GET    /api/comparisons                             — list comparisons
POST   /api/comparisons                             — store a complete document
POST   /api/comparisons/new                         — create from blank template
POST   /api/comparisons/import                      — extract from pasted text
GET    /api/comparisons/{comparison_id}             — comparison detail
DELETE /api/comparisons/{comparison_id}             — delete comparison

POST   /api/comparisons/{comparison_id}/edit              — open a draft
GET    /api/comparisons/{comparison_id}/draft             — current draft
POST   /api/comparisons/{comparison_id}/draft/operations  — apply one edit
POST   /api/comparisons/{comparison_id}/draft/commit      — commit + persist
POST   /api/comparisons/{comparison_id}/draft/discard     — discard draft
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from covercompare.database import get_db
from covercompare.dependencies.auth import get_current_admin, get_session_store
from covercompare.models.database_models import Admin, Client
from covercompare.models.schemas import (
    CommitResponse,
    ComparisonCreateRequest,
    ComparisonImportRequest,
    ComparisonResponse,
    DraftResponse,
    DraftOperationRequest,
    NewComparisonRequest,
)
from covercompare.services.audit import AuditService
from covercompare.services.comparison_extractor import ComparisonExtractionService
from covercompare.services.document_model import ComparisonDocumentModel
from covercompare.services.edit_sessions import apply_operation, edit_sessions
from covercompare.services.fragment import apply_fragment
from covercompare.services.templates import new_comparison

logger = logging.getLogger(__name__)

router = APIRouter()


# ─── Helpers ──────────────────────────────────────────────────────────────────

def _draft_response(model: ComparisonDocumentModel) -> DraftResponse:
    issues = model.validation_issues()
    return DraftResponse(
        state=model.state.value,
        document=ComparisonResponse.from_session(model.current),
        has_validation_issues=bool(issues),
        validation_issues=issues,
    )


async def _check_client(db: AsyncSession, client_id: Optional[str]) -> None:
    if client_id is not None and await db.get(Client, client_id) is None:
        raise HTTPException(status_code=404, detail=f"Client {client_id} not found.")


def get_extraction_service() -> ComparisonExtractionService:
    return ComparisonExtractionService()


# ═══════════════════════════════════════════════════════════════════════════════
# COMPARISON CRUD
# ═══════════════════════════════════════════════════════════════════════════════

@router.get("", response_model=List[ComparisonResponse])
async def list_comparisons(
    client_id: Optional[str] = None,
    store=Depends(get_session_store),
) -> List[ComparisonResponse]:
    """List all comparisons, newest first."""
    sessions = await store.list_sessions(client_id=client_id)
    return [ComparisonResponse.from_session(s) for s in sessions]


@router.post("", response_model=ComparisonResponse, status_code=status.HTTP_201_CREATED)
async def create_comparison(
    body: ComparisonCreateRequest,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    """Store a complete document.  Rows must match the provider count."""
    await _check_client(db, body.client_id)
    if body.id and await store.exists(body.id):
        raise HTTPException(status_code=409, detail=f"Comparison {body.id} already exists.")

    created = await store.create(body.to_session(), client_id=body.client_id)
    await AuditService(db).log_action(
        admin.id, "comparison_create", "comparison", created.id,
        {"new": created.model_dump(mode="json")},
    )
    return ComparisonResponse.from_session(created)


@router.post("/new", response_model=ComparisonResponse, status_code=status.HTTP_201_CREATED)
async def create_blank_comparison(
    body: NewComparisonRequest,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    """Create a comparison from the default three-section template."""
    await _check_client(db, body.client_id)
    session = new_comparison(
        name=body.name,
        plan_type=body.type,
        profile=body.client_profile,
        provider_count=body.provider_count,
    )
    created = await store.create(session, client_id=body.client_id)
    await AuditService(db).log_action(
        admin.id, "comparison_create", "comparison", created.id, {"template": True}
    )
    return ComparisonResponse.from_session(created)


@router.post("/import", response_model=ComparisonResponse, status_code=status.HTTP_201_CREATED)
async def import_comparison(
    body: ComparisonImportRequest,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
    extractor: ComparisonExtractionService = Depends(get_extraction_service),
    db: AsyncSession = Depends(get_db),
) -> ComparisonResponse:
    """
    Turn pasted comparison text into a new stored document.

    The extracted providers and categories replace the template's wholesale.
    A fragment whose rows don't match its provider count is rejected with
    422 (MalformedImport) and nothing is stored.
    """
    fragment = await extractor.extract_fragment(body.raw_text)
    session = apply_fragment(
        new_comparison(name=body.name, plan_type=body.type, profile=body.client_profile),
        fragment,
    )
    if not body.name:
        plans = " vs ".join(p.plan for p in session.providers if p.plan)
        session.name = plans or session.name

    created = await store.create(session)
    await AuditService(db).log_action(
        admin.id, "comparison_import", "comparison", created.id,
        {"providers": len(created.providers), "categories": len(created.categories)},
    )
    logger.info(
        "Imported comparison id=%s with %d providers from %d chars of text",
        created.id, len(created.providers), len(body.raw_text),
    )
    return ComparisonResponse.from_session(created)


@router.get("/{comparison_id}", response_model=ComparisonResponse)
async def get_comparison(
    comparison_id: str,
    store=Depends(get_session_store),
) -> ComparisonResponse:
    """Get one comparison."""
    return ComparisonResponse.from_session(await store.fetch(comparison_id))


@router.delete(
    "/{comparison_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def delete_comparison(
    comparison_id: str,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a comparison and drop any open drafts of it."""
    old = await store.fetch(comparison_id)
    await store.delete(comparison_id)
    dropped = edit_sessions.close_comparison(comparison_id)
    await AuditService(db).log_action(
        admin.id, "comparison_delete", "comparison", comparison_id,
        {"old": old.model_dump(mode="json"), "drafts_dropped": dropped},
    )


# ═══════════════════════════════════════════════════════════════════════════════
# DRAFT LIFECYCLE
# ═══════════════════════════════════════════════════════════════════════════════

@router.post(
    "/{comparison_id}/edit",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enter_edit(
    comparison_id: str,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
) -> DraftResponse:
    """Open a draft of the stored comparison.  409 if one is already open."""
    session = await store.fetch(comparison_id)
    model = edit_sessions.open(admin.id, session)
    return _draft_response(model)


@router.get("/{comparison_id}/draft", response_model=DraftResponse)
async def get_draft(
    comparison_id: str,
    admin: Admin = Depends(get_current_admin),
) -> DraftResponse:
    """Current draft with advisory validation issues."""
    return _draft_response(edit_sessions.get(admin.id, comparison_id))


@router.post("/{comparison_id}/draft/operations", response_model=DraftResponse)
async def apply_draft_operation(
    comparison_id: str,
    body: DraftOperationRequest,
    admin: Admin = Depends(get_current_admin),
) -> DraftResponse:
    """Apply one structural or field edit to the open draft."""
    model = edit_sessions.get(admin.id, comparison_id)
    apply_operation(model, body.operation)
    return _draft_response(model)


@router.post("/{comparison_id}/draft/commit", response_model=CommitResponse)
async def commit_draft(
    comparison_id: str,
    admin: Admin = Depends(get_current_admin),
    store=Depends(get_session_store),
    db: AsyncSession = Depends(get_db),
) -> CommitResponse:
    """
    Commit the draft and persist it.

    Validation issues are reported but never block the commit.  The stored
    document is overwritten (last write wins).  The draft stays open until
    the store has accepted it, so a failed save loses no edits.
    """
    model = edit_sessions.get(admin.id, comparison_id)
    had_issues = model.has_validation_issues()
    old = await store.fetch(comparison_id)

    saved = await store.update(model.current)
    model.commit()
    edit_sessions.close(admin.id, comparison_id)

    await AuditService(db).log_action(
        admin.id, "comparison_update", "comparison", comparison_id,
        {"old": old.model_dump(mode="json"), "new": saved.model_dump(mode="json")},
    )
    return CommitResponse(
        document=ComparisonResponse.from_session(saved),
        had_validation_issues=had_issues,
    )


@router.post("/{comparison_id}/draft/discard", response_model=ComparisonResponse)
async def discard_draft(
    comparison_id: str,
    admin: Admin = Depends(get_current_admin),
) -> ComparisonResponse:
    """Discard every edit since the draft was opened."""
    model = edit_sessions.get(admin.id, comparison_id)
    model.discard()
    edit_sessions.close(admin.id, comparison_id)
    return ComparisonResponse.from_session(model.document)
