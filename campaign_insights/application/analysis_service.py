"""Application service for the end-to-end spreadsheet analysis use case."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

from campaign_insights.application.budget_service import recommend_budget
from campaign_insights.application.classification_service import classify
from campaign_insights.application.reporting.summary import PerformanceSummary, build_performance_summary
from campaign_insights.domain.classification import ThresholdConfig
from campaign_insights.domain.models import AggregateRow, BudgetAction, CanonicalRecord, ClassifiedRow
from campaign_insights.errors import EmptyInputError
from campaign_insights.ingestion import project
from campaign_insights.rollup import build_rollups
from campaign_insights.timeseries import bucket_by_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    records: List[CanonicalRecord]
    rollups: Dict[str, List[AggregateRow]]
    classified: Dict[str, List[ClassifiedRow]]
    budget_actions: Dict[str, List[BudgetAction]]
    time_series: List[AggregateRow]
    granularity: str
    summary: Optional[PerformanceSummary]

    def to_dict(self) -> dict[str, Any]:
        return {
            "record_count": len(self.records),
            "classified": {dim: [row.to_dict() for row in rows] for dim, rows in self.classified.items()},
            "budget_actions": {dim: [a.to_dict() for a in actions] for dim, actions in self.budget_actions.items()},
            "time_series": {
                "granularity": self.granularity,
                "rows": [row.to_dict() for row in self.time_series],
            },
            "summary": self.summary.to_dict() if self.summary is not None else None,
        }


def run_analysis(
    raw_records: Sequence[Mapping[str, Any]],
    mapping: Mapping[str, Optional[str]],
    *,
    thresholds: ThresholdConfig | Mapping[str, Any] | None = None,
    granularity: str = "weekly",
) -> AnalysisResult:
    """Project, roll up per level, classify, advise on budget and bucket by period."""
    records = project(raw_records, mapping)
    rollups = build_rollups(records)

    classified: Dict[str, List[ClassifiedRow]] = {}
    budget_actions: Dict[str, List[BudgetAction]] = {}
    for dimension, rows in rollups.items():
        classified[dimension] = classify(rows, thresholds)
        budget_actions[dimension] = recommend_budget(classified[dimension])

    try:
        time_series = bucket_by_time(records, granularity)
    except EmptyInputError:
        logger.info("No dated records; skipping %s time series", granularity)
        time_series = []

    summary = None
    if classified:
        summary = build_performance_summary(next(iter(classified.values())))

    return AnalysisResult(
        records=records,
        rollups=rollups,
        classified=classified,
        budget_actions=budget_actions,
        time_series=time_series,
        granularity=granularity,
        summary=summary,
    )
