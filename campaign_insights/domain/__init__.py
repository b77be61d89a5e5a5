"""Domain layer package."""

from .classification import ThresholdConfig
from .models import (
    AggregateRow,
    BudgetAction,
    BudgetActionType,
    CanonicalRecord,
    ClassifiedRow,
    PerformanceClass,
    SemanticCandidate,
    SemanticMatcher,
)

__all__ = [
    "AggregateRow",
    "BudgetAction",
    "BudgetActionType",
    "CanonicalRecord",
    "ClassifiedRow",
    "PerformanceClass",
    "SemanticCandidate",
    "SemanticMatcher",
    "ThresholdConfig",
]
