"""Tests for extraction fragment validation and application."""
import pytest

from covercompare.exceptions import MalformedImport
from covercompare.models.comparison import ClientProfile
from covercompare.services.fragment import apply_fragment, parse_fragment
from covercompare.services.templates import new_comparison


def _raw(**overrides):
    raw = {
        "memberName": "Ernie",
        "family_composition": "Main Member + 2 Children",
        "providers": [
            {"underwriter": "Discovery Health", "plan": "KeyCare"},
            {"underwriter": "Momentum", "plan": "Ingwe"},
        ],
        "categories": [
            {
                "title": "Hospital Benefits",
                "items": [{"label": "Premium", "values": ["R4 968", 5189]}],
            }
        ],
    }
    raw.update(overrides)
    return raw


def test_parse_valid_fragment():
    fragment = parse_fragment(_raw())
    assert fragment.profile == {
        "member_name": "Ernie",
        "family_composition": "Main Member + 2 Children",
    }
    assert [p.plan for p in fragment.providers] == ["KeyCare", "Ingwe"]
    # numbers are coerced to text
    assert fragment.categories[0].items[0].values == ["R4 968", "5189"]


def test_row_with_wrong_value_count_is_rejected():
    raw = _raw(categories=[{"title": "H", "items": [{"label": "x", "values": ["only one"]}]}])
    with pytest.raises(MalformedImport) as exc_info:
        parse_fragment(raw)
    assert exc_info.value.path == "categories[0].items[0].values"


@pytest.mark.parametrize(
    "raw, path",
    [
        ([], "fragment"),
        ({"providers": []}, "providers"),
        ({"categories": []}, "providers"),
        ({"providers": ["Discovery"]}, "providers[0]"),
        ({"providers": [{"plan": {"name": "x"}}]}, "providers[0].plan"),
        ({"providers": [{"plan": "x"}], "categories": "none"}, "categories"),
    ],
)
def test_malformed_shapes_name_the_path(raw, path):
    with pytest.raises(MalformedImport) as exc_info:
        parse_fragment(raw)
    assert exc_info.value.path == path


def test_apply_fragment_replaces_wholesale():
    base = new_comparison(profile=ClientProfile(member_name="Old", region="Gauteng"), provider_count=3)
    result = apply_fragment(base, parse_fragment(_raw()))

    assert result.id == base.id
    assert len(result.providers) == 2
    assert [c.title for c in result.categories] == ["Hospital Benefits"]
    assert result.client_profile.member_name == "Ernie"
    assert result.client_profile.region == "Gauteng"
    # input untouched
    assert len(base.providers) == 3
