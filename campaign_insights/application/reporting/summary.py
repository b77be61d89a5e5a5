"""Batch performance summary handed to the insight-writing collaborator."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from campaign_insights.application.reporting.metrics import fmt_amount, fmt_count, fmt_rate, mean, safe_ratio
from campaign_insights.domain.models import DISPLAY_LABELS, ClassifiedRow, PerformanceClass

BEST_MIN_CONVERSIONS = 5
WORST_MIN_SPEND = 100.0


@dataclass(frozen=True)
class PerformanceSummary:
    dimension: str
    group_count: int
    total_spend: float
    total_conversions: float
    average_cpa: float
    average_ctr: float
    average_cvr: float
    best_performer: Optional[str]
    worst_performer: Optional[str]
    class_counts: Dict[str, int]
    summary: str
    action_items: List[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _label(dimension: str) -> str:
    return DISPLAY_LABELS.get(dimension, dimension).lower()


def build_performance_summary(rows: Sequence[ClassifiedRow]) -> PerformanceSummary:
    dimension = rows[0].dimension if rows else ""
    total_spend = sum(row.spend for row in rows)
    total_conversions = sum(row.conversions for row in rows)
    average_cpa = safe_ratio(total_spend, total_conversions)
    average_ctr = mean([row.ctr for row in rows])
    average_cvr = mean([row.cvr for row in rows])

    class_counts = {item.value: 0 for item in PerformanceClass}
    for row in rows:
        class_counts[row.performance_class.value] += 1

    converting = [row for row in rows if row.conversions >= BEST_MIN_CONVERSIONS]
    best = max(converting, key=lambda row: row.conversions) if converting else None
    spending = [row for row in rows if row.spend >= WORST_MIN_SPEND]
    worst = min(spending, key=lambda row: row.ctr + row.cvr) if spending else None

    label = _label(dimension)
    sentences = [
        f"Analysis of {len(rows)} {label} groups with total spend of {fmt_amount(total_spend)}.",
        f"Generated {fmt_count(total_conversions)} conversions at an average CPA of {fmt_amount(average_cpa)}.",
        f"Overall CTR: {fmt_rate(average_ctr)}, CVR: {fmt_rate(average_cvr)}.",
    ]
    action_items: list[str] = []
    if best is not None:
        sentences.append(
            f'Best performing {label}: "{best.group_key}" with {fmt_count(best.conversions)} conversions '
            f"and {fmt_rate(best.ctr)} CTR."
        )
        action_items.append(f"Scale budget for top performer: {best.group_key}")
    if worst is not None:
        sentences.append(
            f'Underperforming {label}: "{worst.group_key}" needs attention with {fmt_rate(worst.ctr)} CTR '
            f"and {fmt_rate(worst.cvr)} CVR."
        )
        action_items.append(f"Review or pause: {worst.group_key}")
    sentences.append(
        f"Performance distribution: {class_counts[PerformanceClass.TOP_PERFORMER.value]} top performers, "
        f"{class_counts[PerformanceClass.UNDERPERFORMER.value]} underperformers identified."
    )

    return PerformanceSummary(
        dimension=dimension,
        group_count=len(rows),
        total_spend=total_spend,
        total_conversions=total_conversions,
        average_cpa=average_cpa,
        average_ctr=average_ctr,
        average_cvr=average_cvr,
        best_performer=best.group_key if best is not None else None,
        worst_performer=worst.group_key if worst is not None else None,
        class_counts=class_counts,
        summary=" ".join(sentences),
        action_items=action_items,
    )
