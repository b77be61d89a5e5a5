"""Infrastructure layer package."""

from .excel_repository import load_raw_records, save_output_workbook
from .report_exporter import analysis_payload, save_summary_json, workbook_sheets
from .semantic_matcher import GeminiSemanticMatcher, StaticSemanticMatcher

__all__ = [
    "load_raw_records",
    "save_output_workbook",
    "analysis_payload",
    "save_summary_json",
    "workbook_sheets",
    "GeminiSemanticMatcher",
    "StaticSemanticMatcher",
]
