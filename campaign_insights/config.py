"""Environment-driven settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

ENV_PREFIX = "CAMPAIGN_INSIGHTS_"
DEFAULT_MATCHER_TIMEOUT = 10.0
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash-latest"


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}") from exc
    if value < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    high_ctr: float
    low_ctr: float
    high_cvr: float
    low_cvr: float
    high_spend_threshold: float
    min_conversions: float
    matcher_timeout: float
    gemini_api_key: str | None
    gemini_model: str


def load_settings() -> Settings:
    """Read settings from the environment, falling back to the documented defaults."""
    return Settings(
        high_ctr=_env_float("HIGH_CTR", 2.0),
        low_ctr=_env_float("LOW_CTR", 0.5),
        high_cvr=_env_float("HIGH_CVR", 3.0),
        low_cvr=_env_float("LOW_CVR", 1.0),
        high_spend_threshold=_env_float("HIGH_SPEND_THRESHOLD", 100.0),
        min_conversions=_env_float("MIN_CONVERSIONS", 5.0),
        matcher_timeout=_env_float("MATCHER_TIMEOUT", DEFAULT_MATCHER_TIMEOUT),
        gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
        gemini_model=os.getenv(f"{ENV_PREFIX}GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
