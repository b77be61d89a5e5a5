"""Domain models for canonical records, rollups and classifications."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date
from enum import Enum
from typing import Any, Protocol, Sequence

CAMPAIGN = "campaign"
AD_GROUP = "ad_group"
CREATIVE = "creative"
SPEND = "spend"
IMPRESSIONS = "impressions"
CLICKS = "clicks"
CONVERSIONS = "conversions"
DATE = "date"

DIMENSION_FIELDS: tuple[str, ...] = (CAMPAIGN, AD_GROUP, CREATIVE)
METRIC_FIELDS: tuple[str, ...] = (SPEND, IMPRESSIONS, CLICKS, CONVERSIONS)
CANONICAL_FIELDS: tuple[str, ...] = (*DIMENSION_FIELDS, *METRIC_FIELDS, DATE)
REQUIRED_FIELDS: tuple[str, ...] = METRIC_FIELDS

PLACEHOLDERS: dict[str, str] = {
    CAMPAIGN: "Unknown Campaign",
    AD_GROUP: "Unknown Ad Group",
    CREATIVE: "Unknown Creative",
}
UNKNOWN_KEY = "Unknown"

DISPLAY_LABELS: dict[str, str] = {
    CAMPAIGN: "Campaign",
    AD_GROUP: "Ad Set",
    CREATIVE: "Ad",
    SPEND: "Cost",
    IMPRESSIONS: "Impression",
    CLICKS: "Click",
    CONVERSIONS: "Purchase",
    DATE: "Date",
}

_FIELD_ALIASES: dict[str, str] = {
    "adgroup": AD_GROUP,
    "ad_group": AD_GROUP,
    "adset": AD_GROUP,
    "ad_set": AD_GROUP,
    **{label.lower().replace(" ", "_"): name for name, label in DISPLAY_LABELS.items()},
    **{name: name for name in CANONICAL_FIELDS},
}


def resolve_field(name: str) -> str | None:
    """Map a canonical name, camelCase alias or display label onto a canonical field."""
    text = str(name or "").strip()
    if not text:
        return None
    key = text.replace(" ", "_").lower()
    if key in _FIELD_ALIASES:
        return _FIELD_ALIASES[key]
    return _FIELD_ALIASES.get(key.replace("_", ""))


class PerformanceClass(str, Enum):
    TOP_PERFORMER = "top-performer"
    HOOKING_NOT_CONVERTING = "hooking-not-converting"
    LOW_ENGAGEMENT_GOOD_QUALITY = "low-engagement-good-quality"
    UNDERPERFORMER = "underperformer"
    BUDGET_WASTER = "budget-waster"
    NEUTRAL = "neutral"


class BudgetActionType(str, Enum):
    INCREASE = "increase"
    DECREASE = "decrease"
    REALLOCATE = "reallocate"


@dataclass(frozen=True)
class CanonicalRecord:
    campaign: str = PLACEHOLDERS[CAMPAIGN]
    ad_group: str = PLACEHOLDERS[AD_GROUP]
    creative: str = PLACEHOLDERS[CREATIVE]
    spend: float = 0.0
    impressions: float = 0.0
    clicks: float = 0.0
    conversions: float = 0.0
    date: date | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AggregateRow:
    """Summary metrics for one group; ratios come from the summed counters."""

    dimension: str
    group_key: str
    spend: float
    impressions: float
    clicks: float
    conversions: float
    ctr: float
    cvr: float
    cpa: float
    cpc: float
    cpm: float
    row_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ClassifiedRow(AggregateRow):
    performance_class: PerformanceClass = PerformanceClass.NEUTRAL
    insights: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["performance_class"] = self.performance_class.value
        payload["insights"] = list(self.insights)
        payload["recommendations"] = list(self.recommendations)
        return payload


@dataclass(frozen=True)
class BudgetAction:
    type: BudgetActionType
    target: str
    current_spend: float
    suggested_change: str
    reason: str
    priority: str
    targets: tuple[str, ...] = ()
    amount: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.type.value
        payload["targets"] = list(self.targets)
        return payload


@dataclass(frozen=True)
class SemanticCandidate:
    field: str
    score: float


class SemanticMatcher(Protocol):
    """External capability that proposes canonical fields for one source column."""

    def suggest(self, column: str) -> Sequence[SemanticCandidate]:
        ...
