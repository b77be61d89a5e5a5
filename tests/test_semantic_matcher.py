"""
tests/test_semantic_matcher.py

Pytest unit tests for the hosted semantic matcher adapter.

The HTTP session is replaced by an in-process fake; nothing leaves the machine.
"""

from __future__ import annotations

import json
from typing import Any

import pytest
import requests

from campaign_insights.config import get_settings
from campaign_insights.domain.models import SemanticCandidate
from campaign_insights.infrastructure.semantic_matcher import (
    GeminiSemanticMatcher,
    StaticSemanticMatcher,
    parse_candidates,
)


class _FakeResponse:
    def __init__(self, payload: Any, status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse) -> None:
        self.response = response
        self.calls: list[dict[str, Any]] = []

    def post(self, url: str, **kwargs: Any) -> _FakeResponse:
        self.calls.append({"url": url, **kwargs})
        return self.response


def _gemini_reply(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_parse_candidates_handles_fences_and_labels() -> None:
    text = '```json\n[{"field": "Purchase", "score": 0.91}, {"field": "Revenue", "score": 0.5}]\n```'

    assert parse_candidates(text) == [SemanticCandidate(field="conversions", score=0.91)]


def test_parse_candidates_accepts_object_form_and_clamps_scores() -> None:
    text = json.dumps({"candidates": [{"field": "Cost", "score": 1.7}, {"field": "Click", "score": "bad"}]})

    assert parse_candidates(text) == [SemanticCandidate(field="spend", score=1.0)]


def test_parse_candidates_rejects_unexpected_payloads() -> None:
    with pytest.raises(ValueError):
        parse_candidates("42")
    with pytest.raises(ValueError):
        parse_candidates("not json")


def test_static_matcher_is_case_insensitive() -> None:
    matcher = StaticSemanticMatcher({"Results": [SemanticCandidate(field="conversions", score=0.8)]})

    assert matcher.suggest("  results ") == (SemanticCandidate(field="conversions", score=0.8),)
    assert matcher.suggest("Other") == ()


def test_gemini_matcher_posts_prompt_and_parses_reply() -> None:
    session = _FakeSession(_FakeResponse(_gemini_reply('[{"field": "Impression", "score": 0.88}]')))
    matcher = GeminiSemanticMatcher(api_key="test-key", model="test-model", session=session, request_timeout=2.5)

    candidates = matcher.suggest("Reach")

    assert candidates == [SemanticCandidate(field="impressions", score=0.88)]
    call = session.calls[0]
    assert "models/test-model:generateContent" in call["url"]
    assert call["params"] == {"key": "test-key"}
    assert call["timeout"] == 2.5
    assert "Column: Reach" in call["json"]["contents"][0]["parts"][0]["text"]


def test_gemini_matcher_raises_on_http_error() -> None:
    session = _FakeSession(_FakeResponse({}, status=500))
    matcher = GeminiSemanticMatcher(api_key="test-key", session=session)

    with pytest.raises(requests.HTTPError):
        matcher.suggest("Reach")


def test_gemini_matcher_raises_on_empty_reply() -> None:
    session = _FakeSession(_FakeResponse({"candidates": []}))
    matcher = GeminiSemanticMatcher(api_key="test-key", session=session)

    with pytest.raises(ValueError):
        matcher.suggest("Reach")


def test_gemini_matcher_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)

    with pytest.raises(ValueError):
        GeminiSemanticMatcher()


def test_gemini_matcher_reads_key_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GEMINI_API_KEY", "env-key")
    monkeypatch.setenv("CAMPAIGN_INSIGHTS_GEMINI_MODEL", "env-model")
    session = _FakeSession(_FakeResponse(_gemini_reply("[]")))

    GeminiSemanticMatcher(session=session).suggest("Notes")

    assert session.calls[0]["params"] == {"key": "env-key"}
    assert "models/env-model:" in session.calls[0]["url"]
