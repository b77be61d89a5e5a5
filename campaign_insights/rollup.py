"""Rollup Engine: per-dimension aggregation of canonical records."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Sequence, Union

import polars as pl

from campaign_insights.domain.models import (
    AD_GROUP,
    CAMPAIGN,
    CREATIVE,
    DIMENSION_FIELDS,
    PLACEHOLDERS,
    UNKNOWN_KEY,
    AggregateRow,
    CanonicalRecord,
    resolve_field,
)
from campaign_insights.errors import EmptyInputError, InvalidGroupingDimensionError
from campaign_insights.ingestion import records_to_frame

logger = logging.getLogger(__name__)

KeySelector = Callable[[CanonicalRecord], Union[str, None]]
Dimension = Union[str, KeySelector]

GROUP_KEY = "__group_key"
CUSTOM_DIMENSION = "custom"
SUM_METRICS: List[str] = ["spend", "impressions", "clicks", "conversions"]


def safe_ratio_expr(num: pl.Expr, den: pl.Expr, scale: float = 1.0) -> pl.Expr:
    return pl.when(den > 0).then(num / den * scale).otherwise(0.0)


class RollupEngine:
    """Groups canonical records and derives ratios from the summed counters."""

    ROW_COLUMNS: List[str] = [
        "group_key",
        "spend",
        "impressions",
        "clicks",
        "conversions",
        "ctr",
        "cvr",
        "cpa",
        "cpc",
        "cpm",
        "row_count",
    ]

    def _sum_aggregations(self) -> List[pl.Expr]:
        return [pl.col(metric).sum().alias(metric) for metric in SUM_METRICS] + [
            pl.len().alias("row_count")
        ]

    def ratio_columns(self) -> List[pl.Expr]:
        return [
            safe_ratio_expr(pl.col("clicks"), pl.col("impressions"), 100.0).alias("ctr"),
            safe_ratio_expr(pl.col("conversions"), pl.col("clicks"), 100.0).alias("cvr"),
            safe_ratio_expr(pl.col("spend"), pl.col("conversions")).alias("cpa"),
            safe_ratio_expr(pl.col("spend"), pl.col("clicks")).alias("cpc"),
            safe_ratio_expr(pl.col("spend"), pl.col("impressions"), 1000.0).alias("cpm"),
        ]

    def _keyed_frame(self, records: Sequence[CanonicalRecord], dimension: Dimension) -> tuple[pl.DataFrame, str]:
        frame = records_to_frame(records)
        if callable(dimension):
            keys: list[str] = []
            for record in records:
                value = dimension(record)
                text = str(value).strip() if value is not None else ""
                keys.append(text or UNKNOWN_KEY)
            return frame.with_columns(pl.Series(GROUP_KEY, keys, dtype=pl.Utf8)), CUSTOM_DIMENSION

        name = resolve_field(dimension)
        if name not in DIMENSION_FIELDS:
            raise ValueError(f"Unsupported grouping dimension: {dimension!r}")
        placeholder = PLACEHOLDERS[name]
        if frame.select((pl.col(name) != placeholder).any()).item() is not True:
            raise InvalidGroupingDimensionError(name)
        return frame.with_columns(pl.col(name).fill_null(placeholder).alias(GROUP_KEY)), name

    def run(self, records: Sequence[CanonicalRecord], dimension: Dimension) -> List[AggregateRow]:
        if not records:
            raise EmptyInputError("No canonical records supplied for aggregation")

        keyed, dimension_name = self._keyed_frame(records, dimension)
        grouped = (
            keyed.group_by(GROUP_KEY, maintain_order=True)
            .agg(self._sum_aggregations())
            .rename({GROUP_KEY: "group_key"})
            .with_columns(self.ratio_columns())
            .sort("spend", descending=True, maintain_order=True)
            .select(self.ROW_COLUMNS)
        )
        return [
            AggregateRow(dimension=dimension_name, **{**row, "row_count": int(row["row_count"])})
            for row in grouped.iter_rows(named=True)
        ]


def aggregate(records: Sequence[CanonicalRecord], dimension: Dimension = CAMPAIGN) -> List[AggregateRow]:
    """One AggregateRow per distinct dimension value, sorted by spend descending."""
    return RollupEngine().run(records, dimension)


def build_rollups(
    records: Sequence[CanonicalRecord],
    dimensions: Sequence[str] = (CAMPAIGN, AD_GROUP, CREATIVE),
) -> Dict[str, List[AggregateRow]]:
    """Campaign / Ad-Set / Ad rollups; dimensions absent from every record are skipped."""
    engine = RollupEngine()
    rollups: Dict[str, List[AggregateRow]] = {}
    for dimension in dimensions:
        try:
            rollups[resolve_field(dimension) or dimension] = engine.run(records, dimension)
        except InvalidGroupingDimensionError as exc:
            logger.warning("Skipping rollup: %s", exc)
    return rollups
