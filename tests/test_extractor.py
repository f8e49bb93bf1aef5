"""Tests for the Ollama-backed comparison extraction service.

Ollama is replaced by an httpx.MockTransport so no model server is needed.
"""
import json

import httpx
import pytest

from covercompare.exceptions import ExtractionUnavailable, MalformedImport
from covercompare.services.comparison_extractor import (
    ComparisonExtractionService,
    parse_json_robust,
)

FRAGMENT = {
    "member_name": "Ernie",
    "providers": [{"underwriter": "Discovery", "plan": "KeyCare"}],
    "categories": [{"title": "Hospital", "items": [{"label": "Cover", "values": ["Unlimited"]}]}],
}


def _service(responses, calls=None):
    """Service whose /api/generate replies with *responses* in order."""
    replies = iter(responses)

    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(json.loads(request.content))
        status_code, text = next(replies)
        return httpx.Response(status_code, json={"response": text})

    return ComparisonExtractionService(transport=httpx.MockTransport(handler))


# ---------------------------------------------------------------------------
# parse_json_robust
# ---------------------------------------------------------------------------

def test_parse_plain_json():
    assert parse_json_robust('{"a": 1}') == (True, {"a": 1})


def test_parse_code_fenced_json():
    ok, value = parse_json_robust('```json\n{"a": [1, 2]}\n```')
    assert ok and value == {"a": [1, 2]}


def test_parse_json_with_prose_and_trailing_comma():
    ok, value = parse_json_robust('Here you go: {"a": true, "b": [1,],} hope that helps')
    assert ok and value == {"a": True, "b": [1]}


def test_parse_garbage_fails():
    assert parse_json_robust("no json here") == (False, None)
    assert parse_json_robust("") == (False, None)


# ---------------------------------------------------------------------------
# ComparisonExtractionService
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_extract_fragment_success():
    calls = []
    service = _service([(200, json.dumps(FRAGMENT))], calls)
    fragment = await service.extract_fragment("Discovery KeyCare: unlimited hospital cover")

    assert fragment.providers[0].plan == "KeyCare"
    assert fragment.profile["member_name"] == "Ernie"
    assert calls[0]["format"] == "json"
    assert calls[0]["stream"] is False
    assert "Discovery KeyCare" in calls[0]["prompt"]


@pytest.mark.asyncio
async def test_extract_retries_with_simpler_prompt():
    calls = []
    service = _service([(200, "not json at all"), (200, json.dumps(FRAGMENT))], calls)
    result = await service.extract("some text")

    assert result == FRAGMENT
    assert len(calls) == 2
    assert calls[0]["prompt"] != calls[1]["prompt"]


@pytest.mark.asyncio
async def test_extract_server_error_is_unavailable():
    calls = []
    service = _service([(500, "")], calls)
    with pytest.raises(ExtractionUnavailable):
        await service.extract("some text")
    # an empty response is not retried
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_extract_rejects_blank_text():
    service = _service([])
    with pytest.raises(ValueError):
        await service.extract("   ")


@pytest.mark.asyncio
async def test_extract_fragment_validates_shape():
    bad = dict(FRAGMENT, categories=[{"title": "H", "items": [{"label": "x", "values": []}]}])
    service = _service([(200, json.dumps(bad))])
    with pytest.raises(MalformedImport):
        await service.extract_fragment("some text")


@pytest.mark.asyncio
async def test_check_health():
    ok = ComparisonExtractionService(
        transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"models": []}))
    )
    down = ComparisonExtractionService(
        transport=httpx.MockTransport(lambda request: httpx.Response(503))
    )
    assert await ok.check_health() is True
    assert await down.check_health() is False
