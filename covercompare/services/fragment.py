"""
Validation and application of extraction fragments.

The extraction service returns whatever the LLM produced.  Nothing from it
reaches a ComparisonDocumentModel until ``parse_fragment`` has checked the
shape: providers are ``{underwriter, plan}`` strings, every row has exactly
one value per provider, and profile fields are strings.  Any deviation
raises MalformedImport naming the offending path.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List

from covercompare.exceptions import MalformedImport
from covercompare.models.comparison import (
    BenefitCategory,
    BenefitItem,
    ComparisonSession,
    Provider,
)

logger = logging.getLogger(__name__)

# Fragment key -> ClientProfile field.  camelCase keys sent by the browser
# console are accepted too.
PROFILE_KEYS: Dict[str, str] = {
    "member_name": "member_name",
    "memberName": "member_name",
    "surname": "surname",
    "id_number": "id_number",
    "idNumber": "id_number",
    "age": "age",
    "occupation": "occupation",
    "family_composition": "family_composition",
    "familyComposition": "family_composition",
    "income_bracket": "income_bracket",
    "incomeBracket": "income_bracket",
    "region": "region",
    "primary_priority": "primary_priority",
    "primaryPriority": "primary_priority",
}


@dataclasses.dataclass
class ExtractionFragment:
    """A validated partial document produced from pasted text."""

    profile: Dict[str, str]
    providers: List[Provider]
    categories: List[BenefitCategory]


def _require_str(value: Any, path: str) -> str:
    if value is None:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise MalformedImport(f"expected text, got {type(value).__name__}", path)
    return value


def _require_list(value: Any, path: str) -> List[Any]:
    if not isinstance(value, list):
        raise MalformedImport(f"expected a list, got {type(value).__name__}", path)
    return value


def _require_dict(value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise MalformedImport(f"expected an object, got {type(value).__name__}", path)
    return value


def parse_fragment(raw: Any) -> ExtractionFragment:
    """
    Validate untrusted extraction output.

    Raises:
        MalformedImport: if the fragment does not match the document shape,
            including any row whose ``values`` length differs from the
            number of providers.
    """
    data = _require_dict(raw, "fragment")

    profile: Dict[str, str] = {}
    for key, field in PROFILE_KEYS.items():
        if key in data:
            profile[field] = _require_str(data[key], key)

    raw_providers = _require_list(data.get("providers"), "providers")
    if not raw_providers:
        raise MalformedImport("at least one provider is required", "providers")

    providers: List[Provider] = []
    for idx, entry in enumerate(raw_providers):
        path = f"providers[{idx}]"
        entry = _require_dict(entry, path)
        providers.append(
            Provider(
                underwriter=_require_str(entry.get("underwriter"), f"{path}.underwriter"),
                plan=_require_str(entry.get("plan"), f"{path}.plan"),
            )
        )

    categories: List[BenefitCategory] = []
    for cat_idx, entry in enumerate(_require_list(data.get("categories", []), "categories")):
        cat_path = f"categories[{cat_idx}]"
        entry = _require_dict(entry, cat_path)
        items: List[BenefitItem] = []
        for item_idx, item in enumerate(_require_list(entry.get("items", []), f"{cat_path}.items")):
            item_path = f"{cat_path}.items[{item_idx}]"
            item = _require_dict(item, item_path)
            values = _require_list(item.get("values"), f"{item_path}.values")
            if len(values) != len(providers):
                raise MalformedImport(
                    f"has {len(values)} values but there are {len(providers)} providers",
                    f"{item_path}.values",
                )
            items.append(
                BenefitItem(
                    label=_require_str(item.get("label"), f"{item_path}.label"),
                    values=[
                        _require_str(v, f"{item_path}.values[{v_idx}]")
                        for v_idx, v in enumerate(values)
                    ],
                )
            )
        notes = entry.get("notes")
        categories.append(
            BenefitCategory(
                title=_require_str(entry.get("title"), f"{cat_path}.title"),
                items=items,
                notes=_require_str(notes, f"{cat_path}.notes") if notes is not None else None,
            )
        )

    logger.info(
        "parse_fragment: %d providers, %d categories, %d profile fields",
        len(providers),
        len(categories),
        len(profile),
    )
    return ExtractionFragment(profile=profile, providers=providers, categories=categories)


def apply_fragment(session: ComparisonSession, fragment: ExtractionFragment) -> ComparisonSession:
    """
    Return a copy of *session* with the fragment's data in place.

    Providers and categories are replaced wholesale, never merged; profile
    fields present in the fragment overwrite the session's.
    """
    return session.model_copy(
        update={
            "client_profile": session.client_profile.model_copy(update=fragment.profile),
            "providers": [p.model_copy() for p in fragment.providers],
            "categories": [c.model_copy(deep=True) for c in fragment.categories],
        },
        deep=True,
    )
