"""
tests/test_column_mapping.py

Pytest unit tests for column inference and mapping validation.

No network access: semantic matching is exercised with in-process matchers.
"""

from __future__ import annotations

import time

import pytest

from campaign_insights.column_mapping import (
    PATTERN_MATCH_CONFIDENCE,
    infer_mapping,
    match_patterns,
    score_column,
    validate_mapping,
)
from campaign_insights.domain.models import SemanticCandidate
from campaign_insights.errors import AmbiguousMappingError, UnmappedRequiredFieldError
from campaign_insights.infrastructure.semantic_matcher import StaticSemanticMatcher

META_EXPORT_COLUMNS = [
    "Campaign",
    "Ad Set Name",
    "Ad Name",
    "Amount Spent",
    "Impressions",
    "Link Clicks",
    "Results",
    "Day",
]


class _SlowMatcher:
    def suggest(self, column: str):
        time.sleep(0.5)
        return [SemanticCandidate(field="conversions", score=0.99)]


class _BrokenMatcher:
    def suggest(self, column: str):
        raise ConnectionError("matcher offline")


class _MalformedMatcher:
    def suggest(self, column: str):
        return [
            {"field": "conversions", "score": 0.9},
            SemanticCandidate(field="conversions", score=None),
            SemanticCandidate(field="Purchase", score=0.8),
        ]


class _CountingSlowMatcher:
    def __init__(self) -> None:
        self.columns: list[str] = []

    def suggest(self, column: str):
        self.columns.append(column)
        time.sleep(0.5)
        return []


def test_pattern_strategy_maps_abbreviated_headers() -> None:
    result = infer_mapping(["Camp Name", "Spend($)", "Impr.", "Clicks", "Purchases"])

    assert result.mapping == {
        "Camp Name": "campaign",
        "Spend($)": "spend",
        "Impr.": "impressions",
        "Clicks": "clicks",
        "Purchases": "conversions",
    }
    assert result.missing_required == ()
    assert result.unmapped == ()
    assert all(value == PATTERN_MATCH_CONFIDENCE for value in result.confidence.values())
    assert set(result.strategies.values()) == {"pattern"}


def test_ad_set_column_is_not_taken_by_creative() -> None:
    picks = match_patterns(META_EXPORT_COLUMNS)

    assert picks["ad_group"] == "Ad Set Name"
    assert picks["creative"] == "Ad Name"
    assert picks["spend"] == "Amount Spent"
    assert picks["clicks"] == "Link Clicks"
    assert picks["date"] == "Day"
    assert picks["conversions"] is None


def test_assigned_column_leaves_candidate_pool() -> None:
    picks = match_patterns(["Ad Group", "Ad"])

    assert picks["ad_group"] == "Ad Group"
    assert picks["creative"] == "Ad"


def test_unmapped_required_field_is_reported() -> None:
    result = infer_mapping(META_EXPORT_COLUMNS)

    assert result.missing_required == ("conversions",)
    assert "Results" in result.unmapped
    assert "Results" not in result.mapping
    with pytest.raises(UnmappedRequiredFieldError) as ctx:
        result.require_complete()
    assert ctx.value.fields == ("conversions",)


def test_keyword_fallback_scores_columns_missed_by_patterns() -> None:
    result = infer_mapping(["Cost", "Reach", "Clicks", "Purchases", "Notes"])

    assert result.mapping["Reach"] == "impressions"
    assert result.confidence["Reach"] == pytest.approx(0.8)
    assert result.strategies["impressions"] == "keyword"
    assert result.unmapped == ("Notes",)
    assert result.missing_required == ()


def test_score_column_thresholds() -> None:
    assert score_column("Total Cost") == ("spend", 0.8)
    assert score_column("Online Purchases") == ("conversions", 0.8)
    assert score_column("Campaign ID") == ("campaign", 0.9)
    assert score_column("Notes") == (None, 0.0)


def test_known_targets_are_not_remapped() -> None:
    result = infer_mapping(
        ["Campaign", "Spend", "Impressions", "Clicks", "Conversions"],
        known_targets=["campaign"],
    )

    assert "campaign" not in result.mapping.values()
    assert result.unmapped == ("Campaign",)


def test_semantic_matcher_resolves_leftover_columns() -> None:
    matcher = StaticSemanticMatcher({"Results": [SemanticCandidate(field="Purchase", score=0.85)]})

    result = infer_mapping(META_EXPORT_COLUMNS, matcher=matcher, timeout=1.0)

    assert result.mapping["Results"] == "conversions"
    assert result.strategies["conversions"] == "semantic"
    assert result.suggestions["Results"][0].field == "conversions"
    assert result.missing_required == ()


def test_low_score_semantic_candidate_is_only_a_suggestion() -> None:
    matcher = StaticSemanticMatcher({"Results": [SemanticCandidate(field="conversions", score=0.4)]})

    result = infer_mapping(META_EXPORT_COLUMNS, matcher=matcher, timeout=1.0)

    assert "Results" in result.unmapped
    assert result.suggestions["Results"][0].score == pytest.approx(0.4)
    assert result.missing_required == ("conversions",)


def test_matcher_timeout_falls_back_to_local_result() -> None:
    result = infer_mapping(META_EXPORT_COLUMNS, matcher=_SlowMatcher(), timeout=0.05)

    assert "Results" in result.unmapped
    assert result.missing_required == ("conversions",)
    assert result.mapping["Amount Spent"] == "spend"


def test_matcher_error_falls_back_to_local_result() -> None:
    result = infer_mapping(META_EXPORT_COLUMNS, matcher=_BrokenMatcher(), timeout=1.0)

    assert result.suggestions == {}
    assert "Results" in result.unmapped


def test_validate_mapping_accepts_labels_and_aliases() -> None:
    resolved = validate_mapping(
        {
            "Campaign name": "Campaign",
            "Ad set": "adGroup",
            "Cost": "Cost",
            "Impr": "impressions",
            "Clicks": "Click",
            "Purchases": "Purchase",
            "Notes": None,
        }
    )

    assert resolved["campaign"] == "Campaign name"
    assert resolved["ad_group"] == "Ad set"
    assert resolved["spend"] == "Cost"
    assert resolved["conversions"] == "Purchases"
    assert "Notes" not in resolved.values()


def test_validate_mapping_rejects_many_to_one() -> None:
    with pytest.raises(AmbiguousMappingError) as ctx:
        validate_mapping(
            {
                "Spend": "spend",
                "Cost": "spend",
                "Impressions": "impressions",
                "Clicks": "clicks",
                "Conversions": "conversions",
            }
        )
    assert ctx.value.field == "spend"
    assert ctx.value.sources == ("Spend", "Cost")


def test_validate_mapping_rejects_unknown_target() -> None:
    with pytest.raises(ValueError):
        validate_mapping({"Region": "region"})


def test_validate_mapping_requires_metric_fields() -> None:
    with pytest.raises(UnmappedRequiredFieldError) as ctx:
        validate_mapping({"Spend": "spend", "Clicks": "clicks"})
    assert set(ctx.value.fields) == {"impressions", "conversions"}


@pytest.mark.parametrize(
    "columns, canonical, expected",
    [
        (["Conversion Rate", "Conversions"], "conversions", "Conversions"),
        (["Cost per click", "Cost"], "spend", "Cost"),
        (["CPM (per 1,000 impressions)", "Impressions"], "impressions", "Impressions"),
    ],
)
def test_rate_columns_do_not_take_counter_fields(columns, canonical, expected) -> None:
    picks = match_patterns(["Campaign", *columns, "Clicks"])

    assert picks[canonical] == expected


def test_rate_only_column_is_left_unmapped() -> None:
    result = infer_mapping(["Campaign", "Spend", "Impressions", "Clicks", "Conversion Rate", "CTR"])

    assert "Conversion Rate" in result.unmapped
    assert "CTR" in result.unmapped
    assert result.missing_required == ("conversions",)
    assert score_column("Cost per click") == (None, 0.0)


def test_malformed_matcher_candidates_are_skipped() -> None:
    result = infer_mapping(META_EXPORT_COLUMNS, matcher=_MalformedMatcher(), timeout=1.0)

    assert result.mapping["Results"] == "conversions"
    assert result.suggestions["Results"] == (SemanticCandidate(field="conversions", score=0.8),)


def test_matcher_timeout_bounds_the_whole_escalation() -> None:
    matcher = _CountingSlowMatcher()

    result = infer_mapping([*META_EXPORT_COLUMNS, "Notes"], matcher=matcher, timeout=0.1)

    assert matcher.columns == ["Results"]
    assert set(result.unmapped) == {"Results", "Notes"}
