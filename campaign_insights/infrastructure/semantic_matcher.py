"""Semantic column matchers backed by a hosted language model.

The normalizer only depends on the ``suggest(column)`` capability; these
adapters are injected by callers that have network access.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Sequence

import requests

from campaign_insights.config import get_settings
from campaign_insights.domain.models import DISPLAY_LABELS, SemanticCandidate, resolve_field

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
_FENCE = re.compile(r"```(?:json)?\s*|```")

PROMPT_TEMPLATE = (
    "Map the spreadsheet column below onto the standard marketing columns.\n"
    "Standard columns: {labels}\n"
    "Column: {column}\n"
    "Reply with JSON only, a list of objects ordered by likelihood, e.g. "
    '[{{"field": "Cost", "score": 0.92}}]. Use an empty list when nothing fits.'
)


def parse_candidates(text: str) -> list[SemanticCandidate]:
    """Parse a model reply into candidates, dropping unknown fields."""
    cleaned = _FENCE.sub("", text or "").strip()
    payload = json.loads(cleaned)
    if isinstance(payload, dict):
        payload = payload.get("candidates", [])
    if not isinstance(payload, list):
        raise ValueError(f"Unexpected matcher payload: {type(payload).__name__}")

    candidates: list[SemanticCandidate] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        canonical = resolve_field(str(item.get("field", "")))
        if canonical is None:
            continue
        try:
            score = float(item.get("score", 0.0))
        except (TypeError, ValueError):
            continue
        candidates.append(SemanticCandidate(field=canonical, score=max(0.0, min(1.0, score))))
    return candidates


class StaticSemanticMatcher:
    """Matcher answering from a fixed column -> candidates table."""

    def __init__(self, table: Mapping[str, Sequence[SemanticCandidate]]) -> None:
        self._table = {key.strip().lower(): tuple(value) for key, value in table.items()}

    def suggest(self, column: str) -> Sequence[SemanticCandidate]:
        return self._table.get(str(column).strip().lower(), ())


class GeminiSemanticMatcher:
    """Matcher calling the Gemini ``generateContent`` REST endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        session: Any | None = None,
        request_timeout: float | None = None,
    ) -> None:
        settings = get_settings()
        resolved_key = api_key or settings.gemini_api_key
        if not resolved_key:
            raise ValueError("GEMINI_API_KEY is not configured")
        self._api_key = resolved_key
        self._model = model or settings.gemini_model
        self._session = session or requests.Session()
        self._request_timeout = request_timeout if request_timeout is not None else settings.matcher_timeout

    def _prompt(self, column: str) -> str:
        labels = ", ".join(DISPLAY_LABELS.values())
        return PROMPT_TEMPLATE.format(labels=labels, column=column)

    def suggest(self, column: str) -> Sequence[SemanticCandidate]:
        body = {
            "contents": [{"parts": [{"text": self._prompt(column)}]}],
            "generationConfig": {"temperature": 0.3, "topK": 40, "topP": 0.95, "maxOutputTokens": 256},
        }
        response = self._session.post(
            GEMINI_ENDPOINT.format(model=self._model),
            params={"key": self._api_key},
            json=body,
            timeout=self._request_timeout,
        )
        response.raise_for_status()
        result = response.json()
        try:
            text = result["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ValueError("No mapping result from Gemini API") from exc
        candidates = parse_candidates(text)
        logger.debug("Gemini suggested %s for column %r", candidates, column)
        return candidates
