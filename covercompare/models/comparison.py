"""
Comparison document shape.

These pydantic models are the unit of persistence and of the draft-edit
lifecycle.  Structural edits go through ComparisonDocumentModel, which keeps
``len(item.values) == len(providers)`` for every row.
"""
import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class PlanType(str, Enum):
    """Closed set of comparison types."""

    MEDICAL_AID = "Medical Aid"
    HOSPITAL_PLAN = "Hospital Plan"
    GAP_COVER = "Gap Cover"


class ClientProfile(BaseModel):
    """Free-form description of the insured party."""

    member_name: str = ""
    surname: str = ""
    id_number: str = ""
    age: str = ""
    occupation: str = ""
    family_composition: str = ""
    income_bracket: str = ""
    region: str = ""
    primary_priority: str = ""


class Provider(BaseModel):
    """One underwriter + plan column.  Identity is positional."""

    underwriter: str = ""
    plan: str = ""


class BenefitItem(BaseModel):
    """A benefit row: one value per provider, in provider order."""

    label: str = ""
    values: List[str] = Field(default_factory=list)


class BenefitCategory(BaseModel):
    """A titled section of benefit rows."""

    title: str = ""
    items: List[BenefitItem] = Field(default_factory=list)
    notes: Optional[str] = None


class ComparisonSession(BaseModel):
    """One saved comparison document."""

    id: str = ""
    name: str = ""
    date: str = Field(default_factory=lambda: datetime.date.today().isoformat())
    type: PlanType = PlanType.MEDICAL_AID
    client_profile: ClientProfile = Field(default_factory=ClientProfile)
    providers: List[Provider] = Field(default_factory=list)
    categories: List[BenefitCategory] = Field(default_factory=list)
    report_title_override: Optional[str] = None

    def resolve_report_title(self) -> str:
        """Heading a renderer prints at the top of the report."""
        if self.report_title_override:
            return self.report_title_override
        plans = " vs ".join(p.plan for p in self.providers if p.plan)
        if not plans:
            return f"{self.type.value} Comparison"
        return f"{self.type.value} Comparison – {plans}"
