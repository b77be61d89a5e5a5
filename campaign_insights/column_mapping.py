"""Column inference: map arbitrary spreadsheet headers onto the canonical schema."""

from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from campaign_insights.config import get_settings
from campaign_insights.domain.models import (
    AD_GROUP,
    CAMPAIGN,
    CANONICAL_FIELDS,
    CLICKS,
    CONVERSIONS,
    CREATIVE,
    DATE,
    IMPRESSIONS,
    METRIC_FIELDS,
    REQUIRED_FIELDS,
    SPEND,
    SemanticCandidate,
    SemanticMatcher,
    resolve_field,
)
from campaign_insights.errors import AmbiguousMappingError, UnmappedRequiredFieldError

logger = logging.getLogger(__name__)

PATTERN_MATCH_CONFIDENCE = 0.9
MIN_CONFIDENCE = 0.7

# Field order matters: ad_group claims "Ad Set"/"Ad Group" columns before the
# generic creative fragments run, and metrics claim "Ad Spend"-style columns first.
FIELD_PATTERNS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (CAMPAIGN, (r"^campaign(\s*name)?$", r"campaign", r"camp")),
    (AD_GROUP, (r"ad.?group", r"ad.?set", r"adgroup", r"adset", r"group")),
    (SPEND, (r"^(total\s*)?(spend|cost|amount\s*spent)$", r"spend", r"cost", r"budget", r"amount")),
    (IMPRESSIONS, (r"^impressions?$", r"impression", r"impr", r"views", r"\bimp")),
    (CLICKS, (r"^clicks?$", r"click", r"\bclk")),
    (CONVERSIONS, (r"^(conversions?|purchases?)$", r"conversion", r"\bconv", r"convert", r"purchase", r"order")),
    (DATE, (r"^date$", r"date", r"\bday\b", r"timestamp")),
    (CREATIVE, (r"creative", r"ad.?name", r"^ads?$", r"\bad\b")),
)

_AD_TOKEN = re.compile(r"(^|[^a-z])ad([^a-z]|$)")
# Rates and unit costs are derived columns, never raw counters.
RATIO_COLUMN = re.compile(r"\bper\b|\brate\b|\bct?r\b|\bcv?r\b|cp[acm]", re.IGNORECASE)


@dataclass(frozen=True)
class MappingResult:
    """Inferred column mapping with per-column confidence for operator review."""

    mapping: dict[str, str]
    confidence: dict[str, float]
    unmapped: tuple[str, ...]
    suggestions: dict[str, tuple[SemanticCandidate, ...]] = field(default_factory=dict)
    missing_required: tuple[str, ...] = ()
    strategies: dict[str, str] = field(default_factory=dict)

    def field_to_source(self) -> dict[str, str]:
        return {canonical: source for source, canonical in self.mapping.items()}

    def require_complete(self) -> "MappingResult":
        if self.missing_required:
            raise UnmappedRequiredFieldError(self.missing_required)
        return self


def match_patterns(
    source_columns: Sequence[str],
    known_targets: Iterable[str] = (),
) -> dict[str, str | None]:
    """Hard-pick one source column per canonical field using ordered regex fragments."""
    skip = {resolve_field(target) for target in known_targets}
    pool = [column for column in source_columns if column and str(column).strip()]
    picks: dict[str, str | None] = {}
    for canonical, fragments in FIELD_PATTERNS:
        if canonical in skip:
            continue
        picks[canonical] = None
        candidates = pool
        if canonical in METRIC_FIELDS:
            candidates = [column for column in pool if not RATIO_COLUMN.search(str(column))]
        for fragment in fragments:
            regex = re.compile(fragment, re.IGNORECASE)
            match = next((column for column in candidates if regex.search(str(column).strip())), None)
            if match is not None:
                picks[canonical] = match
                pool.remove(match)
                break
    return picks


def score_column(column: str) -> tuple[str | None, float]:
    """Keyword score of one column against the canonical fields."""
    text = str(column or "").strip().lower()
    if not text:
        return None, 0.0
    if "campaign" in text:
        return CAMPAIGN, 0.9
    if any(token in text for token in ("adset", "ad set", "ad_set", "adgroup", "ad group", "ad_group")):
        return AD_GROUP, 0.9
    if RATIO_COLUMN.search(text):
        return None, 0.0
    if "date" in text or "time" in text or "day" in text:
        return DATE, 0.8
    if any(token in text for token in ("spend", "cost", "budget", "amount")):
        return SPEND, 0.8
    if any(token in text for token in ("impression", "reach", "view")):
        return IMPRESSIONS, 0.8
    if "click" in text:
        return CLICKS, 0.9
    if any(token in text for token in ("purchase", "conversion", "order")):
        return CONVERSIONS, 0.8
    if "creative" in text or _AD_TOKEN.search(text):
        return CREATIVE, 0.8
    return None, 0.0


def _suggest_with_timeout(
    matcher: SemanticMatcher,
    column: str,
    timeout: float | None,
) -> tuple[SemanticCandidate, ...]:
    executor = ThreadPoolExecutor(max_workers=1)
    future = executor.submit(matcher.suggest, column)
    try:
        raw = future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Semantic matcher timed out after %ss for column %r", timeout, column)
        return ()
    except Exception as exc:
        logger.warning("Semantic matcher failed for column %r: %s", column, exc)
        return ()
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    candidates: list[SemanticCandidate] = []
    try:
        items = list(raw or ())
    except TypeError as exc:
        logger.warning("Semantic matcher returned a non-iterable reply for column %r: %s", column, exc)
        return ()
    for candidate in items:
        try:
            canonical = resolve_field(candidate.field)
            score = float(candidate.score)
        except (AttributeError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed semantic candidate %r for column %r: %s", candidate, column, exc)
            continue
        if canonical is None:
            continue
        candidates.append(SemanticCandidate(field=canonical, score=score))
    candidates.sort(key=lambda item: -item.score)
    return tuple(candidates)


def infer_mapping(
    source_columns: Sequence[str],
    *,
    known_targets: Iterable[str] = (),
    matcher: SemanticMatcher | None = None,
    timeout: float | None = None,
) -> MappingResult:
    """Infer a source -> canonical mapping.

    Pattern matches are accepted first, then keyword scores >= 0.7 for the
    columns left over. When a matcher is injected, columns still unmapped are
    escalated to it; a timeout or matcher error keeps the local result.
    ``timeout`` bounds the whole escalation, not each call: columns left when
    it runs out stay unmapped without being sent to the matcher.
    """
    columns = [str(column) for column in source_columns if column is not None and str(column).strip()]
    known = {resolve_field(target) for target in known_targets} - {None}

    mapping: dict[str, str] = {}
    confidence: dict[str, float] = {}
    strategies: dict[str, str] = {}

    for canonical, source in match_patterns(columns, known_targets=known).items():
        if source is None:
            continue
        mapping[source] = canonical
        confidence[source] = PATTERN_MATCH_CONFIDENCE
        strategies[canonical] = "pattern"

    taken = set(mapping.values()) | known
    unmapped: list[str] = []
    for column in columns:
        if column in mapping:
            continue
        canonical, score = score_column(column)
        if canonical is not None and score >= MIN_CONFIDENCE and canonical not in taken:
            mapping[column] = canonical
            confidence[column] = score
            strategies[canonical] = "keyword"
            taken.add(canonical)
            continue
        unmapped.append(column)

    suggestions: dict[str, tuple[SemanticCandidate, ...]] = {}
    if matcher is not None and unmapped:
        limit = timeout if timeout is not None else get_settings().matcher_timeout
        deadline = time.monotonic() + limit
        still_unmapped: list[str] = []
        for column in unmapped:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Semantic matcher budget of %ss spent; %r left unmapped", limit, column)
                still_unmapped.append(column)
                continue
            candidates = _suggest_with_timeout(matcher, column, remaining)
            if candidates:
                suggestions[column] = candidates
            accepted = next(
                (item for item in candidates if item.score >= MIN_CONFIDENCE and item.field not in taken),
                None,
            )
            if accepted is None:
                still_unmapped.append(column)
                continue
            mapping[column] = accepted.field
            confidence[column] = accepted.score
            strategies[accepted.field] = "semantic"
            taken.add(accepted.field)
        unmapped = still_unmapped

    missing = tuple(canonical for canonical in REQUIRED_FIELDS if canonical not in taken)
    if missing:
        logger.info("Required fields left unmapped: %s", list(missing))
    logger.debug("Inferred column mapping: %s", mapping)

    return MappingResult(
        mapping=mapping,
        confidence=confidence,
        unmapped=tuple(unmapped),
        suggestions=suggestions,
        missing_required=missing,
        strategies=strategies,
    )


def validate_mapping(
    mapping: Mapping[str, str | None],
    required: Sequence[str] = REQUIRED_FIELDS,
) -> dict[str, str]:
    """Check a confirmed source -> canonical mapping and return canonical -> source."""
    resolved: dict[str, list[str]] = {}
    for source, target in mapping.items():
        if target is None or not str(target).strip():
            continue
        canonical = resolve_field(target)
        if canonical is None or canonical not in CANONICAL_FIELDS:
            raise ValueError(f"Unknown canonical field '{target}' for column '{source}'")
        resolved.setdefault(canonical, []).append(source)

    for canonical, sources in resolved.items():
        if len(sources) > 1:
            raise AmbiguousMappingError(canonical, sources)

    missing = [canonical for canonical in required if canonical not in resolved]
    if missing:
        raise UnmappedRequiredFieldError(missing)

    return {canonical: sources[0] for canonical, sources in resolved.items()}
