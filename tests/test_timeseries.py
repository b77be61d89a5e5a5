"""
tests/test_timeseries.py

Pytest unit tests for period bucketing.
"""

from __future__ import annotations

from datetime import date

import pytest

from campaign_insights.domain.models import CanonicalRecord
from campaign_insights.errors import EmptyInputError
from campaign_insights.rollup import aggregate
from campaign_insights.timeseries import bucket_by_time


def _on(day: date | None, **metrics) -> CanonicalRecord:
    return CanonicalRecord(campaign="A", date=day, **metrics)


RECORDS = [
    _on(date(2024, 1, 3), spend=10.0, impressions=1000, clicks=10, conversions=1),
    _on(date(2024, 1, 6), spend=20.0, impressions=1000, clicks=20, conversions=2),
    _on(date(2024, 1, 7), spend=30.0, impressions=1000, clicks=30, conversions=3),
    _on(date(2024, 2, 1), spend=40.0, impressions=1000, clicks=40, conversions=4),
]


def test_daily_keys_are_sorted_ascending() -> None:
    rows = bucket_by_time(list(reversed(RECORDS)), "daily")

    assert [row.group_key for row in rows] == ["2024-01-03", "2024-01-06", "2024-01-07", "2024-02-01"]
    assert all(row.dimension == "daily" for row in rows)


def test_weekly_buckets_start_on_sunday() -> None:
    rows = bucket_by_time(RECORDS, "weekly")

    assert [row.group_key for row in rows] == ["2023-12-31", "2024-01-07", "2024-01-28"]
    first = rows[0]
    assert first.spend == pytest.approx(30.0)
    assert first.clicks == pytest.approx(30.0)
    assert first.row_count == 2


def test_monthly_buckets() -> None:
    rows = bucket_by_time(RECORDS, "monthly")

    assert [(row.group_key, row.row_count) for row in rows] == [("2024-01", 3), ("2024-02", 1)]
    assert rows[0].spend == pytest.approx(60.0)


def test_period_ratios_are_means_of_record_ratios() -> None:
    records = [
        _on(date(2024, 5, 1), spend=10.0, impressions=100, clicks=10, conversions=1),
        _on(date(2024, 5, 1), spend=90.0, impressions=900, clicks=9, conversions=3),
    ]

    row = bucket_by_time(records, "daily")[0]

    assert row.ctr == pytest.approx((10.0 + 1.0) / 2)
    assert row.cvr == pytest.approx((10.0 + 100 * 3 / 9) / 2)
    assert row.cpa == pytest.approx((10.0 + 30.0) / 2)
    assert row.cpc == pytest.approx(100.0 / 19)
    assert row.cpm == pytest.approx(100.0 / 1000 * 1000)


def test_undated_records_are_ignored() -> None:
    rows = bucket_by_time(RECORDS + [_on(None, spend=999.0)], "monthly")

    assert sum(row.spend for row in rows) == pytest.approx(100.0)


def test_no_dated_records_raises() -> None:
    with pytest.raises(EmptyInputError):
        bucket_by_time([_on(None, spend=1.0)], "daily")


def test_unknown_granularity_raises() -> None:
    with pytest.raises(ValueError):
        bucket_by_time(RECORDS, "hourly")


def test_counters_and_unit_costs_agree_with_rollup() -> None:
    records = [
        _on(date(2024, 5, 1), spend=12.0, impressions=300, clicks=7, conversions=2),
        _on(date(2024, 5, 1), spend=0.0, impressions=0, clicks=0, conversions=0),
    ]

    bucket = bucket_by_time(records, "daily")[0]
    rollup = aggregate(records, "campaign")[0]

    for name in ("spend", "impressions", "clicks", "conversions", "cpc", "cpm"):
        assert getattr(bucket, name) == pytest.approx(getattr(rollup, name))
