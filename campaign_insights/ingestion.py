"""Record projection: raw spreadsheet rows -> canonical records."""

from __future__ import annotations

import math
from datetime import date, datetime
from typing import Any, Mapping, Sequence

import polars as pl

from campaign_insights.column_mapping import validate_mapping
from campaign_insights.domain.models import (
    CANONICAL_FIELDS,
    DATE,
    DIMENSION_FIELDS,
    METRIC_FIELDS,
    PLACEHOLDERS,
    CanonicalRecord,
)
from campaign_insights.errors import EmptyInputError

DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%Y.%m.%d", "%Y%m%d")

FRAME_SCHEMA: dict[str, Any] = {
    **{name: pl.Utf8 for name in DIMENSION_FIELDS},
    **{name: pl.Float64 for name in METRIC_FIELDS},
    DATE: pl.Date,
}


def _text_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _source_series(raw_records: Sequence[Mapping[str, Any]], canonical: str, source: str | None) -> pl.Series:
    if source is None:
        values: list[str | None] = [None] * len(raw_records)
    else:
        values = [_text_value(record.get(source)) for record in raw_records]
    return pl.Series(canonical, values, dtype=pl.Utf8)


def _metric_expr(column_name: str) -> pl.Expr:
    parsed = (
        pl.col(column_name)
        .str.strip_chars()
        .str.replace_all(",", "")
        .cast(pl.Float64, strict=False)
    )
    return (
        pl.when(parsed.is_finite() & (parsed >= 0))
        .then(parsed)
        .otherwise(0.0)
        .fill_null(0.0)
        .alias(column_name)
    )


def _dimension_expr(column_name: str) -> pl.Expr:
    text = pl.col(column_name).str.strip_chars()
    return (
        pl.when(text.is_null() | (text == ""))
        .then(pl.lit(PLACEHOLDERS[column_name]))
        .otherwise(text)
        .alias(column_name)
    )


def _date_expr(column_name: str) -> pl.Expr:
    # Drop any time-of-day part; day and month may be unpadded.
    text = pl.col(column_name).str.strip_chars().str.replace(r"[T ].*$", "")
    return pl.coalesce([text.str.to_date(fmt, strict=False) for fmt in DATE_FORMATS]).alias(column_name)


def project(
    raw_records: Sequence[Mapping[str, Any]],
    mapping: Mapping[str, str | None],
) -> list[CanonicalRecord]:
    """Apply a confirmed source -> canonical mapping to raw rows, preserving order.

    Non-numeric, missing or negative metric cells become 0.0 without raising;
    callers that need "0 means genuinely zero" must validate beforehand.
    """
    if not raw_records:
        raise EmptyInputError("No raw records supplied for projection")

    field_to_source = validate_mapping(mapping)
    text_frame = pl.DataFrame(
        [_source_series(raw_records, canonical, field_to_source.get(canonical)) for canonical in CANONICAL_FIELDS]
    )
    projected = text_frame.select(
        [_dimension_expr(name) for name in DIMENSION_FIELDS]
        + [_metric_expr(name) for name in METRIC_FIELDS]
        + [_date_expr(DATE)]
    )
    return [CanonicalRecord(**row) for row in projected.iter_rows(named=True)]


def records_to_frame(records: Sequence[CanonicalRecord]) -> pl.DataFrame:
    """Columnar view of canonical records for the aggregation engines."""
    columns: dict[str, list[Any]] = {name: [] for name in CANONICAL_FIELDS}
    for record in records:
        for name in CANONICAL_FIELDS:
            columns[name].append(getattr(record, name))
    return pl.DataFrame(columns, schema=FRAME_SCHEMA)
