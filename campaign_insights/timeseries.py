"""Time-series bucketing of canonical records by calendar period."""

from __future__ import annotations

from typing import List, Sequence

import polars as pl

from campaign_insights.domain.models import AggregateRow, CanonicalRecord
from campaign_insights.errors import EmptyInputError
from campaign_insights.ingestion import records_to_frame
from campaign_insights.rollup import SUM_METRICS, safe_ratio_expr

GRANULARITIES: tuple[str, ...] = ("daily", "weekly", "monthly")


class TimeSeriesEngine:
    """Period rollups for trend analysis.

    Counters are summed per period like the rollup engine, but ctr/cvr/cpa are
    the mean of the per-record ratios inside the period, not ratios of the sums.
    """

    @staticmethod
    def _period_expr(granularity: str) -> pl.Expr:
        day = pl.col("date")
        if granularity == "daily":
            return day.dt.strftime("%Y-%m-%d").alias("period")
        if granularity == "weekly":
            # polars weekday(): Monday=1 .. Sunday=7, so weekday % 7 is days since Sunday.
            sunday = day - pl.duration(days=day.dt.weekday() % 7)
            return sunday.dt.strftime("%Y-%m-%d").alias("period")
        return day.dt.strftime("%Y-%m").alias("period")

    def _record_ratios(self) -> List[pl.Expr]:
        return [
            safe_ratio_expr(pl.col("clicks"), pl.col("impressions"), 100.0).alias("record_ctr"),
            safe_ratio_expr(pl.col("conversions"), pl.col("clicks"), 100.0).alias("record_cvr"),
            safe_ratio_expr(pl.col("spend"), pl.col("conversions")).alias("record_cpa"),
        ]

    def run(self, records: Sequence[CanonicalRecord], granularity: str = "daily") -> List[AggregateRow]:
        granularity = str(granularity or "").strip().lower()
        if granularity not in GRANULARITIES:
            raise ValueError(f"Unsupported granularity: {granularity!r}; expected one of {list(GRANULARITIES)}")

        dated = records_to_frame(records).filter(pl.col("date").is_not_null())
        if dated.is_empty():
            raise EmptyInputError("No dated records available for time-based analysis")

        bucketed = (
            dated.with_columns([self._period_expr(granularity), *self._record_ratios()])
            .group_by("period", maintain_order=True)
            .agg(
                [pl.col(metric).sum().alias(metric) for metric in SUM_METRICS]
                + [
                    pl.col("record_ctr").mean().alias("ctr"),
                    pl.col("record_cvr").mean().alias("cvr"),
                    pl.col("record_cpa").mean().alias("cpa"),
                    pl.len().alias("row_count"),
                ]
            )
            .with_columns(
                [
                    safe_ratio_expr(pl.col("spend"), pl.col("clicks")).alias("cpc"),
                    safe_ratio_expr(pl.col("spend"), pl.col("impressions"), 1000.0).alias("cpm"),
                ]
            )
            .sort("period")
        )
        return [
            AggregateRow(
                dimension=granularity,
                group_key=row["period"],
                spend=row["spend"],
                impressions=row["impressions"],
                clicks=row["clicks"],
                conversions=row["conversions"],
                ctr=row["ctr"],
                cvr=row["cvr"],
                cpa=row["cpa"],
                cpc=row["cpc"],
                cpm=row["cpm"],
                row_count=int(row["row_count"]),
            )
            for row in bucketed.iter_rows(named=True)
        ]


def bucket_by_time(records: Sequence[CanonicalRecord], granularity: str = "daily") -> List[AggregateRow]:
    """One row per period key, ascending."""
    return TimeSeriesEngine().run(records, granularity)
