"""Domain, database and schema models for Cover Compare."""
from covercompare.models.comparison import (
    PlanType,
    ClientProfile,
    Provider,
    BenefitItem,
    BenefitCategory,
    ComparisonSession,
)
from covercompare.models.database_models import (
    Admin,
    AdminRole,
    Client,
    ComparisonSessionRecord,
    AuditLog,
)
from covercompare.models.schemas import (
    ComparisonResponse,
    DraftResponse,
    CommitResponse,
    ClientResponse,
    AdminResponse,
    AuditLogResponse,
    HealthCheckResponse,
)

__all__ = [
    # Domain models
    "PlanType",
    "ClientProfile",
    "Provider",
    "BenefitItem",
    "BenefitCategory",
    "ComparisonSession",
    # Database models
    "Admin",
    "AdminRole",
    "Client",
    "ComparisonSessionRecord",
    "AuditLog",
    # Pydantic schemas
    "ComparisonResponse",
    "DraftResponse",
    "CommitResponse",
    "ClientResponse",
    "AdminResponse",
    "AuditLogResponse",
    "HealthCheckResponse",
]
