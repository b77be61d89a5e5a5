"""Campaign Insights entrypoint."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from campaign_insights.application import run_analysis
from campaign_insights.column_mapping import infer_mapping
from campaign_insights.config import get_settings
from campaign_insights.infrastructure import (
    GeminiSemanticMatcher,
    analysis_payload,
    load_raw_records,
    save_output_workbook,
    save_summary_json,
    workbook_sheets,
)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Analyze a marketing performance spreadsheet.")
    parser.add_argument("input", type=Path, help="CSV or Excel export")
    parser.add_argument("--sheet", default=None, help="Preferred worksheet name")
    parser.add_argument("--output-dir", type=Path, default=Path("output"))
    parser.add_argument("--granularity", choices=["daily", "weekly", "monthly"], default="weekly")
    parser.add_argument("--semantic", action="store_true", help="Escalate unmapped columns to Gemini")
    return parser.parse_args()


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    args = _parse_args()

    raw_records = load_raw_records(args.input, preferred_sheet=args.sheet)
    columns = list(raw_records[0].keys()) if raw_records else []

    matcher = None
    if args.semantic and get_settings().gemini_api_key:
        matcher = GeminiSemanticMatcher()
    mapping_result = infer_mapping(columns, matcher=matcher).require_complete()

    result = run_analysis(raw_records, mapping_result.mapping, granularity=args.granularity)

    output_json_path = args.output_dir / f"{args.input.stem}_analysis.json"
    output_excel_path = args.output_dir / f"{args.input.stem}_analysis.xlsx"
    save_summary_json(output_json_path, analysis_payload(mapping_result, result))
    excel_saved, excel_error_message = save_output_workbook(output_excel_path, workbook_sheets(result))

    if result.summary is not None:
        print(json.dumps(result.summary.to_dict(), indent=2, ensure_ascii=False))
    print(f"Saved JSON: {output_json_path}")
    if excel_saved:
        print(f"Saved Excel: {output_excel_path}")
    else:
        print(f"Excel save skipped (file may be open/locked): {excel_error_message}")


if __name__ == "__main__":
    main()
