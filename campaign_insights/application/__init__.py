"""Application layer package."""

from .analysis_service import AnalysisResult, run_analysis
from .budget_service import recommend_budget
from .classification_service import classify

__all__ = ["classify", "recommend_budget", "AnalysisResult", "run_analysis"]
