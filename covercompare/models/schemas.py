"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Annotated, Optional, List, Dict, Any, Literal, Union
from datetime import datetime

from covercompare.models.comparison import ClientProfile, ComparisonSession, PlanType


# Comparison Schemas
class ComparisonResponse(ComparisonSession):
    """A comparison document plus the heading a renderer would print."""

    report_title: str = ""

    @classmethod
    def from_session(cls, session: ComparisonSession) -> "ComparisonResponse":
        return cls(**session.model_dump(), report_title=session.resolve_report_title())


class ComparisonCreateRequest(ComparisonSession):
    """A complete document to store, optionally linked to a client."""

    client_id: Optional[str] = None

    def to_session(self) -> ComparisonSession:
        return ComparisonSession(**self.model_dump(exclude={"client_id"}))


class NewComparisonRequest(BaseModel):
    """Schema for creating a comparison from the blank template."""

    name: str = Field("", max_length=255)
    type: PlanType = PlanType.MEDICAL_AID
    client_profile: ClientProfile = Field(default_factory=ClientProfile)
    provider_count: int = Field(2, ge=1, le=10)
    client_id: Optional[str] = None


class ComparisonImportRequest(BaseModel):
    """Pasted text to turn into a new comparison."""

    raw_text: str = Field(..., min_length=1, pattern=r"\S")
    name: str = Field("", max_length=255)
    type: PlanType = PlanType.MEDICAL_AID
    client_profile: ClientProfile = Field(default_factory=ClientProfile)


# Draft Schemas
class DraftResponse(BaseModel):
    """Current state of an open draft."""

    state: str
    document: ComparisonResponse
    has_validation_issues: bool = False
    validation_issues: List[str] = []


class CommitResponse(BaseModel):
    """Result of committing a draft."""

    document: ComparisonResponse
    had_validation_issues: bool = False


# Edit operations — one per ComparisonDocumentModel method
class SetProfileFieldOp(BaseModel):
    op: Literal["set_profile_field"]
    key: str
    value: str


class SetProviderFieldOp(BaseModel):
    op: Literal["set_provider_field"]
    index: int
    key: str
    value: str


class AddProviderOp(BaseModel):
    op: Literal["add_provider"]


class RemoveProviderOp(BaseModel):
    op: Literal["remove_provider"]
    index: int


class SetCategoryTitleOp(BaseModel):
    op: Literal["set_category_title"]
    cat_index: int
    title: str


class SetCategoryNotesOp(BaseModel):
    op: Literal["set_category_notes"]
    cat_index: int
    notes: Optional[str] = None


class AddCategoryOp(BaseModel):
    op: Literal["add_category"]


class RemoveCategoryOp(BaseModel):
    op: Literal["remove_category"]
    cat_index: int


class AddRowOp(BaseModel):
    op: Literal["add_row"]
    cat_index: int


class RemoveRowOp(BaseModel):
    op: Literal["remove_row"]
    cat_index: int
    item_index: int


class SetRowLabelOp(BaseModel):
    op: Literal["set_row_label"]
    cat_index: int
    item_index: int
    label: str


class SetRowValueOp(BaseModel):
    op: Literal["set_row_value"]
    cat_index: int
    item_index: int
    provider_index: int
    value: str


class SetDocumentFieldOp(BaseModel):
    op: Literal["set_document_field"]
    key: str
    value: Optional[str] = None

    @model_validator(mode="after")
    def _only_override_is_nullable(self) -> "SetDocumentFieldOp":
        if self.value is None and self.key != "report_title_override":
            raise ValueError(f"'{self.key}' cannot be null")
        return self


EditOperation = Annotated[
    Union[
        SetProfileFieldOp,
        SetProviderFieldOp,
        AddProviderOp,
        RemoveProviderOp,
        SetCategoryTitleOp,
        SetCategoryNotesOp,
        AddCategoryOp,
        RemoveCategoryOp,
        AddRowOp,
        RemoveRowOp,
        SetRowLabelOp,
        SetRowValueOp,
        SetDocumentFieldOp,
    ],
    Field(discriminator="op"),
]


class DraftOperationRequest(BaseModel):
    """One edit to apply to the open draft."""

    operation: EditOperation


# Client Schemas
class ClientCreateRequest(ClientProfile):
    """Profile of a new client."""


class ClientResponse(ClientProfile):
    """Schema for client responses."""

    id: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientCreateResponse(BaseModel):
    """New client plus a templated comparison for it (not yet stored)."""

    client: ClientResponse
    comparison: ComparisonResponse


# Admin Schemas
class AdminResponse(BaseModel):
    """Schema for admin responses."""

    id: str
    email: str
    role: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AdminInviteRequest(BaseModel):
    """Schema for inviting a new admin."""

    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")


# Audit Schemas
class AuditLogResponse(BaseModel):
    """Schema for audit log entries."""

    id: int
    actor_id: Optional[str] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    meta: Optional[Dict[str, Any]] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Data export / import
class DataExportResponse(BaseModel):
    """Everything the console stores, as JSON."""

    data_source: str
    exported_at: datetime
    sessions: List[ComparisonSession]
    clients: List[ClientResponse] = []


class DataImportRequest(BaseModel):
    """Sessions and clients to load."""

    sessions: List[ComparisonSession] = []
    clients: List[ClientProfile] = []


class DataImportResponse(BaseModel):
    """Counts of imported records."""

    sessions: int
    clients: int


# Health Check Schema
class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    database: str
    ollama: str
    data_source: str
    timestamp: datetime
    version: str = "0.1.0"
