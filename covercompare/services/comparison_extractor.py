"""
LLM-based extraction of comparison documents from pasted text.

Uses Ollama's /api/generate endpoint with qwen2.5:3b (or whatever
OLLAMA_LLM_MODEL is configured to).  Prompts are module-level constants so
they can be tuned without touching logic code.

The service only returns *untrusted* parsed JSON; callers must pass it
through ``covercompare.services.fragment.parse_fragment`` before it reaches
a document model.

Public API
----------
ComparisonExtractionService.extract(raw_text)      -> Any
ComparisonExtractionService.extract_fragment(text) -> ExtractionFragment
ComparisonExtractionService.check_health()         -> bool
"""
from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional, Tuple

import httpx

from covercompare.config import settings
from covercompare.exceptions import ExtractionUnavailable
from covercompare.services.fragment import ExtractionFragment, parse_fragment

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Prompt templates — edit these to tune LLM output without touching logic
# ---------------------------------------------------------------------------

_EXTRACTION_PROMPT = """\
Analyze the following insurance comparison text (which might be from an Excel \
or PDF OCR). The text may compare TWO or MORE providers.

Extract it into a structured JSON object matching this schema:
- member_name: string
- family_composition: string
- providers: array of {{"underwriter": string, "plan": string}}
- categories: array of {{"title": string, "items": array of \
{{"label": string, "values": array of string}}}}

Important: each item's "values" array must have exactly one entry per \
provider, in the same order as "providers". Use "" when a provider has no \
value for a benefit.

Text to process:
---
{raw_text}
---

Respond ONLY with a valid JSON object. No explanation, no markdown.\
"""

_EXTRACTION_RETRY_PROMPT = """\
Convert this insurance benefit comparison into JSON.

Text:
{raw_text}

Return ONLY a JSON object — nothing else, no markdown:
{{"member_name": "", "family_composition": "", \
"providers": [{{"underwriter": "Insurer", "plan": "Plan"}}], \
"categories": [{{"title": "Hospital Benefits", "items": [{{"label": "Benefit", "values": ["value"]}}]}}]}}\
"""


class ComparisonExtractionService:
    """
    Text-to-comparison extraction via Ollama /api/generate.

    Limits concurrency to MAX_CONCURRENT simultaneous LLM calls.
    Retries JSON parsing up to MAX_JSON_RETRIES times with a simpler prompt.
    Handles small models' tendency to wrap JSON in markdown code fences.
    """

    MAX_CONCURRENT: int = 2
    MAX_JSON_RETRIES: int = 2
    LLM_TIMEOUT: float = float(settings.OLLAMA_TIMEOUT)

    EXTRACTION_PROMPT = _EXTRACTION_PROMPT
    EXTRACTION_RETRY_PROMPT = _EXTRACTION_RETRY_PROMPT

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.base_url = settings.OLLAMA_BASE_URL
        self.model = settings.OLLAMA_LLM_MODEL
        self.max_chars = settings.EXTRACTION_MAX_CHARS
        self.timeout = httpx.Timeout(self.LLM_TIMEOUT, connect=10.0)
        self._transport = transport
        self._semaphore = asyncio.Semaphore(self.MAX_CONCURRENT)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract(self, raw_text: str) -> Any:
        """
        Ask the LLM to structure *raw_text* and return the parsed JSON.

        Raises:
            ValueError: if *raw_text* is blank.
            ExtractionUnavailable: if no parseable response was produced.
        """
        if not raw_text or not raw_text.strip():
            raise ValueError("raw_text is required")

        truncated = raw_text.strip()[: self.max_chars]
        prompt = self.EXTRACTION_PROMPT.format(raw_text=truncated)
        retry_prompt = self.EXTRACTION_RETRY_PROMPT.format(raw_text=truncated)

        success, parsed = await self._call_llm_json(prompt, retry_prompt=retry_prompt)
        if not success:
            raise ExtractionUnavailable(
                "The extraction service could not parse that text. "
                "Try pasting a clearer selection or fill in manually."
            )
        return parsed

    async def extract_fragment(self, raw_text: str) -> ExtractionFragment:
        """extract() followed by strict shape validation (MalformedImport)."""
        return parse_fragment(await self.extract(raw_text))

    async def check_health(self) -> bool:
        """Return ``True`` if Ollama is reachable and returns HTTP 200."""
        try:
            async with self._client(timeout=5.0) as client:
                resp = await client.get(f"{self.base_url}/api/tags")
                return resp.status_code == 200
        except Exception as exc:
            logger.error("Ollama health check failed: %s", exc)
            return False

    # ------------------------------------------------------------------
    # Core LLM caller
    # ------------------------------------------------------------------

    def _client(self, timeout: Any = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout if timeout is not None else self.timeout,
            transport=self._transport,
        )

    async def _call_llm(self, prompt: str, max_tokens: int = 4000) -> str:
        """
        POST to Ollama /api/generate and return the response text.

        Uses semaphore to cap concurrent LLM calls.  Returns empty string
        on any transport error (timeout, connection failure, non-200 response).
        """
        async with self._semaphore:
            try:
                async with self._client() as client:
                    resp = await client.post(
                        f"{self.base_url}/api/generate",
                        json={
                            "model": self.model,
                            "prompt": prompt,
                            "stream": False,
                            "format": "json",
                            "options": {
                                "num_predict": max_tokens,
                                "temperature": 0.1,  # low temp for deterministic JSON
                            },
                        },
                    )

                if resp.status_code == 200:
                    return resp.json().get("response", "")

                logger.error(
                    "_call_llm: Ollama returned HTTP %d: %s",
                    resp.status_code,
                    resp.text[:300],
                )
                return ""

            except httpx.TimeoutException:
                logger.error("_call_llm: request timed out after %.0f s", self.LLM_TIMEOUT)
                return ""
            except httpx.HTTPError as exc:
                logger.error("_call_llm: connection error — %s", exc)
                return ""

    async def _call_llm_json(
        self,
        prompt: str,
        retry_prompt: Optional[str] = None,
    ) -> Tuple[bool, Any]:
        """
        Call the LLM and attempt to parse the response as JSON.

        Retries up to MAX_JSON_RETRIES times.  On retry, uses *retry_prompt*
        if provided, otherwise repeats the original prompt.

        Returns ``(success: bool, parsed_value: Any)``.
        """
        prompts = [prompt] + [retry_prompt or prompt] * (self.MAX_JSON_RETRIES - 1)

        for attempt, current_prompt in enumerate(prompts, start=1):
            response_text = await self._call_llm(current_prompt)

            if not response_text:
                # Empty response means timeout or connection error; a retry
                # would most likely fail the same way.
                logger.warning(
                    "_call_llm_json: empty LLM response (attempt %d), skipping retries",
                    attempt,
                )
                return False, None

            success, parsed = parse_json_robust(response_text)
            if success:
                if attempt > 1:
                    logger.info("_call_llm_json: JSON parsed on attempt %d", attempt)
                return True, parsed

            if attempt < self.MAX_JSON_RETRIES:
                logger.warning(
                    "_call_llm_json: JSON parse failed on attempt %d/%d, retrying",
                    attempt,
                    self.MAX_JSON_RETRIES,
                )

        logger.error("_call_llm_json: all %d JSON parse attempts failed", self.MAX_JSON_RETRIES)
        return False, None


# ---------------------------------------------------------------------------
# Robust JSON parsing
# ---------------------------------------------------------------------------

def parse_json_robust(response: str) -> Tuple[bool, Any]:
    """
    Try multiple strategies to parse JSON from potentially messy LLM output.

    Handles:
    - Markdown code fences (```json … ```, ``` … ```)
    - Trailing commas before ] or }
    - Python-style True / False / None
    - Surrounding prose — finds the first balanced {...} or [...] block
    - Missing closing bracket (adds one and retries)

    Returns ``(success, parsed_value)``.
    """
    if not response:
        return False, None

    text = response.strip()

    # Strategy 1: direct parse
    ok, val = _try_json(text)
    if ok:
        return True, val

    # Strategy 2: strip markdown code fences
    stripped = _strip_code_fences(text)
    if stripped != text:
        ok, val = _try_json(stripped)
        if ok:
            return True, val
        text = stripped

    # Strategy 3: fix common JSON mangling
    fixed = _fix_json_issues(text)
    ok, val = _try_json(fixed)
    if ok:
        return True, val

    # Strategy 4: extract JSON structure from surrounding prose
    for open_b, close_b in (("{", "}"), ("[", "]")):
        fragment = _extract_json_structure(text, open_b, close_b)
        if fragment:
            ok, val = _try_json(fragment)
            if ok:
                return True, val
            ok, val = _try_json(_fix_json_issues(fragment))
            if ok:
                return True, val

    # Strategy 5: attempt to close a truncated object / array
    for suffix in ("}", "]}", "]}]}", "]"):
        ok, val = _try_json(fixed + suffix)
        if ok:
            logger.debug("parse_json_robust: recovered with suffix %r", suffix)
            return True, val

    logger.warning("parse_json_robust: all strategies failed. Preview: %s", response[:400])
    return False, None


def _try_json(text: str) -> Tuple[bool, Any]:
    try:
        return True, json.loads(text)
    except ValueError:
        return False, None


def _strip_code_fences(text: str) -> str:
    """Remove ```json / ``` delimiters that LLMs often wrap output in."""
    text = re.sub(r"^```(?:json|javascript|text)?\s*\n?", "", text, flags=re.IGNORECASE)
    text = re.sub(r"\n?```\s*$", "", text)
    return text.strip()


def _fix_json_issues(text: str) -> str:
    """Repair the most common JSON mangling patterns from LLMs."""
    text = re.sub(r",(\s*[}\]])", r"\1", text)
    text = re.sub(r"\bTrue\b", "true", text)
    text = re.sub(r"\bFalse\b", "false", text)
    text = re.sub(r"\bNone\b", "null", text)
    return text.strip()


def _extract_json_structure(text: str, open_b: str, close_b: str) -> str:
    """
    Find the first complete balanced open_b … close_b structure in *text*.
    Returns the matched fragment, or empty string if not found.
    """
    start = text.find(open_b)
    if start == -1:
        return ""

    depth = 0
    in_string = False
    escape_next = False

    for i, ch in enumerate(text[start:], start=start):
        if escape_next:
            escape_next = False
            continue
        if ch == "\\" and in_string:
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == open_b:
            depth += 1
        elif ch == close_b:
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    return ""
