"""
Starting documents: blank templates for new comparisons and the built-in
sample used to seed an empty local store.
"""
import uuid
from typing import List, Optional

from covercompare.models.comparison import (
    BenefitCategory,
    BenefitItem,
    ClientProfile,
    ComparisonSession,
    PlanType,
    Provider,
)

DEFAULT_SECTIONS = ("Hospital Benefits", "Day-to-Day Benefits", "Extra Benefits")


def new_session_id() -> str:
    return uuid.uuid4().hex


def new_comparison(
    name: str = "",
    plan_type: PlanType = PlanType.MEDICAL_AID,
    profile: Optional[ClientProfile] = None,
    provider_count: int = 2,
) -> ComparisonSession:
    """
    Build an empty comparison with the default sections, one blank row each.

    Args:
        name: Display name.  Derived from the profile when empty.
        plan_type: Comparison type.
        profile: Client profile to attach.
        provider_count: Number of blank provider columns (at least 1).
    """
    profile = profile or ClientProfile()
    provider_count = max(1, provider_count)
    if not name:
        member = f"{profile.member_name} {profile.surname}".strip()
        name = f"{member} - Comparison" if member else "New Comparison"

    return ComparisonSession(
        id=new_session_id(),
        name=name,
        type=plan_type,
        client_profile=profile.model_copy(),
        providers=[Provider() for _ in range(provider_count)],
        categories=[
            BenefitCategory(
                title=title,
                items=[BenefitItem(label="", values=[""] * provider_count)],
            )
            for title in DEFAULT_SECTIONS
        ],
    )


def _row(label: str, *values: str) -> BenefitItem:
    return BenefitItem(label=label, values=list(values))


def sample_comparisons() -> List[ComparisonSession]:
    """Sample document shown when the local store has never been written."""
    return [
        ComparisonSession(
            id="1",
            name="Discovery KeyCare vs Momentum Ingwe",
            date="2025-01-20",
            type=PlanType.MEDICAL_AID,
            client_profile=ClientProfile(
                member_name="Ernie",
                family_composition="Main Member + 2 Children",
                income_bracket="High Income",
                region="Gauteng",
                primary_priority="Regional Hospitalization",
            ),
            providers=[
                Provider(underwriter="Discovery Health", plan="KeyCare Start Regional"),
                Provider(underwriter="Momentum Medical Scheme", plan="Ingwe Option"),
            ],
            categories=[
                BenefitCategory(
                    title="Hospital Benefits",
                    items=[
                        _row("Monthly Premiums", "Total: ≈ R4 968", "Total: ≈ R5 189"),
                        _row(
                            "Hospital Cover",
                            "Unlimited at 100% DHR in network",
                            "Unlimited at 100% MMSR in network",
                        ),
                        _row(
                            "Co-payment (non-network)",
                            "R6 000 per admission",
                            "None if network used",
                        ),
                        _row(
                            "ICU/High Care Limit",
                            "Unlimited (PMB & network)",
                            "Limited to 10 days/admission",
                        ),
                        _row(
                            "Oncology (Cancer)",
                            "State facility; 80% DHR out-of-network",
                            "Limited PMB at state facilities",
                        ),
                    ],
                ),
                BenefitCategory(
                    title="Day-to-Day Benefits",
                    items=[
                        _row("Chronic Illness Cover", "27 PMB conditions", "26 PMB conditions"),
                        _row(
                            "GP Visits",
                            "Unlimited via nominated GP",
                            "Unlimited in-network (after 10th visit)",
                        ),
                        _row(
                            "Specialist Cover",
                            "Up to 2 visits (R2 780 per person)",
                            "Max 2 visits/family (R1 350 per visit)",
                        ),
                    ],
                ),
            ],
        )
    ]
