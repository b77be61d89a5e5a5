"""Domain policies for performance archetype classification."""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Callable, Mapping, Optional, Sequence

from campaign_insights.config import Settings, get_settings
from campaign_insights.domain.models import AggregateRow, PerformanceClass

HOOKING_MIN_IMPRESSIONS = 10000
BUDGET_WASTER_CPA_FACTOR = 1.5

_CAMEL_KEYS: dict[str, str] = {
    "highCTR": "high_ctr",
    "lowCTR": "low_ctr",
    "highCVR": "high_cvr",
    "lowCVR": "low_cvr",
    "highSpendThreshold": "high_spend_threshold",
    "minConversions": "min_conversions",
}


@dataclass(frozen=True)
class ThresholdConfig:
    high_ctr: float = 2.0
    low_ctr: float = 0.5
    high_cvr: float = 3.0
    low_cvr: float = 1.0
    high_spend_threshold: float = 100.0
    min_conversions: float = 5.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ThresholdConfig":
        settings = settings or get_settings()
        return cls(
            high_ctr=settings.high_ctr,
            low_ctr=settings.low_ctr,
            high_cvr=settings.high_cvr,
            low_cvr=settings.low_cvr,
            high_spend_threshold=settings.high_spend_threshold,
            min_conversions=settings.min_conversions,
        )

    def with_overrides(self, overrides: Mapping[str, Any]) -> "ThresholdConfig":
        known = {item.name for item in fields(self)}
        changes: dict[str, float] = {}
        for key, value in overrides.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in known:
                raise ValueError(f"Unknown threshold: {key}")
            changes[name] = float(value)
        return replace(self, **changes)


@dataclass(frozen=True)
class BatchStatistics:
    """Statistics shared by every row of one classification pass."""

    average_cpa: Optional[float]


def compute_batch_statistics(rows: Sequence[AggregateRow], thresholds: ThresholdConfig) -> BatchStatistics:
    qualified = [row.cpa for row in rows if row.conversions >= thresholds.min_conversions]
    if not qualified:
        return BatchStatistics(average_cpa=None)
    return BatchStatistics(average_cpa=sum(qualified) / len(qualified))


Predicate = Callable[[AggregateRow, ThresholdConfig, BatchStatistics], bool]


@dataclass(frozen=True)
class ClassificationRule:
    performance_class: PerformanceClass
    condition: Predicate
    insights: tuple[str, ...]
    recommendations: tuple[str, ...]


def _hooking_not_converting(row: AggregateRow, t: ThresholdConfig, _: BatchStatistics) -> bool:
    return row.impressions > HOOKING_MIN_IMPRESSIONS and row.ctr > t.high_ctr and row.cvr < t.low_cvr


def _top_performer(row: AggregateRow, t: ThresholdConfig, _: BatchStatistics) -> bool:
    return row.ctr > t.high_ctr and row.cvr > t.high_cvr


def _low_engagement_good_quality(row: AggregateRow, t: ThresholdConfig, _: BatchStatistics) -> bool:
    return row.ctr < t.low_ctr and row.cvr > t.high_cvr


def _underperformer(row: AggregateRow, t: ThresholdConfig, _: BatchStatistics) -> bool:
    return row.ctr < t.low_ctr and row.cvr < t.low_cvr


def _budget_waster(row: AggregateRow, t: ThresholdConfig, stats: BatchStatistics) -> bool:
    if stats.average_cpa is None:
        return False
    return row.spend > t.high_spend_threshold and row.cpa > stats.average_cpa * BUDGET_WASTER_CPA_FACTOR


# Evaluated in order; the first matching rule wins.
RULES: tuple[ClassificationRule, ...] = (
    ClassificationRule(
        PerformanceClass.HOOKING_NOT_CONVERTING,
        _hooking_not_converting,
        ("High engagement but low conversion",),
        ("Review landing page alignment", "Check creative-to-offer match"),
    ),
    ClassificationRule(
        PerformanceClass.TOP_PERFORMER,
        _top_performer,
        ("Excellent performance on all metrics",),
        ("Scale budget if CPA is profitable", "Use as creative template"),
    ),
    ClassificationRule(
        PerformanceClass.LOW_ENGAGEMENT_GOOD_QUALITY,
        _low_engagement_good_quality,
        ("Quality traffic but low initial appeal",),
        ("Improve creative hook", "Test new ad formats"),
    ),
    ClassificationRule(
        PerformanceClass.UNDERPERFORMER,
        _underperformer,
        ("Poor performance across metrics",),
        ("Pause or completely rework", "Review targeting and creative"),
    ),
    ClassificationRule(
        PerformanceClass.BUDGET_WASTER,
        _budget_waster,
        ("High spend with poor efficiency",),
        ("Reduce budget or pause", "Investigate targeting issues"),
    ),
)


def matching_rule(
    row: AggregateRow,
    thresholds: ThresholdConfig,
    stats: BatchStatistics,
) -> ClassificationRule | None:
    for rule in RULES:
        if rule.condition(row, thresholds, stats):
            return rule
    return None
