"""Error taxonomy for the analysis core."""

from __future__ import annotations

from typing import Sequence


class CampaignInsightsError(ValueError):
    """Base class for analysis errors surfaced to callers."""


class UnmappedRequiredFieldError(CampaignInsightsError):
    def __init__(self, fields: Sequence[str]) -> None:
        self.fields = tuple(fields)
        super().__init__(f"Required fields have no confirmed column mapping: {list(self.fields)}")


class AmbiguousMappingError(CampaignInsightsError):
    def __init__(self, field: str, sources: Sequence[str]) -> None:
        self.field = field
        self.sources = tuple(sources)
        super().__init__(f"Canonical field '{field}' is mapped from multiple columns: {list(self.sources)}")


class EmptyInputError(CampaignInsightsError):
    """No records were supplied, so there is nothing to analyze."""


class InvalidGroupingDimensionError(CampaignInsightsError):
    def __init__(self, dimension: str) -> None:
        self.dimension = dimension
        super().__init__(f"Grouping dimension '{dimension}' is absent from every record")
