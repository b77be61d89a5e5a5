"""Infrastructure adapter for analysis export targets."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List

from campaign_insights.application.analysis_service import AnalysisResult
from campaign_insights.column_mapping import MappingResult
from campaign_insights.domain.models import DISPLAY_LABELS


def analysis_payload(mapping_result: MappingResult, result: AnalysisResult) -> dict[str, Any]:
    return {
        "mapping": mapping_result.mapping,
        "confidence": mapping_result.confidence,
        "unmapped": list(mapping_result.unmapped),
        "strategies": mapping_result.strategies,
        **result.to_dict(),
    }


def workbook_sheets(result: AnalysisResult) -> Dict[str, List[Dict[str, Any]]]:
    """Rollup and budget sheet per level, then the trend sheet."""
    sheets: Dict[str, List[Dict[str, Any]]] = {}
    for dimension, rows in result.classified.items():
        label = DISPLAY_LABELS.get(dimension, dimension)
        sheets[f"{label} Rollup"] = [row.to_dict() for row in rows]
        sheets[f"{label} Budget"] = [action.to_dict() for action in result.budget_actions.get(dimension, [])]
    sheets[f"Trend ({result.granularity})"] = [row.to_dict() for row in result.time_series]
    return sheets


def save_summary_json(path: Path, summary: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
