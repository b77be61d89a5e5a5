"""Campaign insights package."""

from .application import AnalysisResult, classify, recommend_budget, run_analysis
from .column_mapping import MappingResult, infer_mapping, validate_mapping
from .ingestion import project
from .rollup import aggregate, build_rollups
from .timeseries import bucket_by_time

__all__ = [
    "infer_mapping",
    "validate_mapping",
    "MappingResult",
    "project",
    "aggregate",
    "build_rollups",
    "classify",
    "recommend_budget",
    "bucket_by_time",
    "AnalysisResult",
    "run_analysis",
]
