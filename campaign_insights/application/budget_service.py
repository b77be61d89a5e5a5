"""Application service for budget reallocation use case."""

from __future__ import annotations

from typing import Sequence

from campaign_insights.domain.budget import (
    CUT_CLASSES,
    CUT_SAVINGS_RATE,
    REALLOCATION_TARGETS,
    SCALE_CLASSES,
    split_candidates,
)
from campaign_insights.domain.models import BudgetAction, BudgetActionType, ClassifiedRow


def recommend_budget(rows: Sequence[ClassifiedRow]) -> list[BudgetAction]:
    """Scale top-ranked winners, cut bottom-ranked losers, then reallocate the savings."""
    scale_candidates, cut_candidates = split_candidates(rows)
    actions: list[BudgetAction] = []

    for row in scale_candidates:
        if row.performance_class not in SCALE_CLASSES:
            continue
        actions.append(
            BudgetAction(
                type=BudgetActionType.INCREASE,
                target=row.group_key,
                current_spend=row.spend,
                suggested_change="+20-50%",
                reason="Excellent performance metrics warrant scaling",
                priority="high",
            )
        )

    cuts = [row for row in cut_candidates if row.performance_class in CUT_CLASSES]
    for row in cuts:
        actions.append(
            BudgetAction(
                type=BudgetActionType.DECREASE,
                target=row.group_key,
                current_spend=row.spend,
                suggested_change="-50% or pause",
                reason="Poor performance metrics, reallocate budget",
                priority="high",
            )
        )

    if cuts:
        savings = sum(row.spend * CUT_SAVINGS_RATE for row in cuts)
        receivers = scale_candidates[:REALLOCATION_TARGETS]
        actions.append(
            BudgetAction(
                type=BudgetActionType.REALLOCATE,
                target=", ".join(row.group_key for row in receivers),
                current_spend=sum(row.spend for row in receivers),
                suggested_change=f"+${savings:,.2f}",
                reason=f"Reallocate ${savings:.2f} from underperformers to top performers",
                priority="medium",
                targets=tuple(row.group_key for row in receivers),
                amount=savings,
            )
        )
    return actions
