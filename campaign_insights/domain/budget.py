"""Domain policies for budget reallocation."""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

from campaign_insights.domain.models import AggregateRow, PerformanceClass

MIN_ELIGIBLE_CONVERSIONS = 5
CANDIDATE_SHARE = 0.3
REALLOCATION_TARGETS = 3
CUT_SAVINGS_RATE = 0.5

SCALE_CLASSES = frozenset({PerformanceClass.TOP_PERFORMER})
CUT_CLASSES = frozenset({PerformanceClass.UNDERPERFORMER, PerformanceClass.BUDGET_WASTER})

RowT = TypeVar("RowT", bound=AggregateRow)


def performance_score(row: AggregateRow) -> float:
    return (row.ctr * row.cvr) / max(row.cpa, 1.0)


def candidate_count(eligible: int) -> int:
    """Rows considered on each side: ceil(30%) of the eligible rows."""
    return math.ceil(round(eligible * CANDIDATE_SHARE, 9))


def split_candidates(rows: Sequence[RowT]) -> tuple[list[RowT], list[RowT]]:
    """Return (scale candidates, cut candidates) ranked by performance score."""
    eligible = [row for row in rows if row.conversions >= MIN_ELIGIBLE_CONVERSIONS]
    ranked = sorted(eligible, key=performance_score, reverse=True)
    count = candidate_count(len(ranked))
    if count == 0:
        return [], []
    return ranked[:count], ranked[-count:]
