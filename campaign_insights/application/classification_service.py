"""Application service for performance classification use case."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from campaign_insights.domain.classification import (
    ThresholdConfig,
    compute_batch_statistics,
    matching_rule,
)
from campaign_insights.domain.models import AggregateRow, ClassifiedRow, PerformanceClass


def _resolve_thresholds(thresholds: ThresholdConfig | Mapping[str, Any] | None) -> ThresholdConfig:
    if thresholds is None:
        return ThresholdConfig.from_settings()
    if isinstance(thresholds, ThresholdConfig):
        return thresholds
    return ThresholdConfig.from_settings().with_overrides(thresholds)


def _base_fields(row: AggregateRow) -> dict[str, Any]:
    return {
        "dimension": row.dimension,
        "group_key": row.group_key,
        "spend": row.spend,
        "impressions": row.impressions,
        "clicks": row.clicks,
        "conversions": row.conversions,
        "ctr": row.ctr,
        "cvr": row.cvr,
        "cpa": row.cpa,
        "cpc": row.cpc,
        "cpm": row.cpm,
        "row_count": row.row_count,
    }


def classify(
    rows: Sequence[AggregateRow],
    thresholds: ThresholdConfig | Mapping[str, Any] | None = None,
) -> list[ClassifiedRow]:
    """Assign exactly one performance class per row.

    The batch average CPA is computed once over all rows before any row is
    evaluated, so the budget-waster rule sees the same statistic for every row.
    """
    config = _resolve_thresholds(thresholds)
    stats = compute_batch_statistics(rows, config)

    output: list[ClassifiedRow] = []
    for row in rows:
        rule = matching_rule(row, config, stats)
        if rule is None:
            output.append(ClassifiedRow(**_base_fields(row), performance_class=PerformanceClass.NEUTRAL))
            continue
        output.append(
            ClassifiedRow(
                **_base_fields(row),
                performance_class=rule.performance_class,
                insights=rule.insights,
                recommendations=rule.recommendations,
            )
        )
    return output
