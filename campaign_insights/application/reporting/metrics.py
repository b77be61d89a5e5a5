"""Shared numeric/formatting utilities for reporting."""

from __future__ import annotations

from typing import Sequence


def safe_ratio(num: float, den: float) -> float:
    if den <= 0:
        return 0.0
    return num / den


def mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def fmt_amount(value: float | None) -> str:
    if value is None:
        return "$0.00"
    return f"${value:,.2f}"


def fmt_rate(value: float | None) -> str:
    """Format a value already expressed in percent (ctr/cvr)."""
    if value is None:
        return "N/A"
    return f"{value:.2f}%"


def fmt_count(value: float | None) -> str:
    if value is None:
        return "0"
    return f"{value:,.0f}"
