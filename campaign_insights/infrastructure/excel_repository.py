"""Infrastructure adapter for spreadsheet-based raw record input and rollup output."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

import polars as pl

EXCEL_SUFFIXES = {".xlsx", ".xlsm"}
CSV_SUFFIXES = {".csv", ".txt"}


def _import_openpyxl() -> tuple[Any, Any]:
    try:
        from openpyxl import Workbook, load_workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required for Excel fallback I/O.") from exc
    return Workbook, load_workbook


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = str(value).strip() if value not in (None, "") else f"column_{idx + 1}"
        count = seen.get(base, 0)
        name = base if count == 0 else f"{base}_{count + 1}"
        seen[base] = count + 1
        headers.append(name)
    return headers


def _read_with_polars(path: Path, preferred_sheet: str | None) -> pl.DataFrame:
    if preferred_sheet:
        return pl.read_excel(path, sheet_name=preferred_sheet)
    return pl.read_excel(path)


def _read_with_openpyxl(path: Path, preferred_sheet: str | None) -> list[dict[str, Any]]:
    _, load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    try:
        sheet_names = list(workbook.sheetnames)
        if not sheet_names:
            raise ValueError(f"No sheets found in {path}")
        sheet_name = preferred_sheet if preferred_sheet in sheet_names else sheet_names[0]
        row_iter = workbook[sheet_name].iter_rows(values_only=True)
        header_row = next(row_iter, None)
        if header_row is None:
            return []

        headers = _normalize_headers(header_row)
        records: list[dict[str, Any]] = []
        for values in row_iter:
            if values is None or all(value is None for value in values):
                continue
            records.append({name: values[idx] if idx < len(values) else None for idx, name in enumerate(headers)})
        return records
    finally:
        workbook.close()


def load_raw_records(path: str | Path, preferred_sheet: str | None = None) -> list[dict[str, Any]]:
    """Read an uploaded spreadsheet into flat row maps, one per data row."""
    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"Input file not found: {source}")

    suffix = source.suffix.lower()
    if suffix in CSV_SUFFIXES:
        return pl.read_csv(source, infer_schema_length=0).to_dicts()
    if suffix not in EXCEL_SUFFIXES:
        raise ValueError(f"Unsupported input format: {source.suffix}")

    try:
        return _read_with_polars(source, preferred_sheet).to_dicts()
    except Exception:
        return _read_with_openpyxl(source, preferred_sheet)


def _excel_cell_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, bool, str)):
        return value
    if isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return None
        return value
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def write_output_workbook(path: str | Path, sheets: Dict[str, List[Dict[str, Any]]]) -> None:
    """Write one sheet per table; each table is a list of row dicts sharing keys."""
    Workbook, _ = _import_openpyxl()
    workbook = Workbook()
    workbook.remove(workbook.active)

    for sheet_name, rows in sheets.items():
        worksheet = workbook.create_sheet(title=str(sheet_name)[:31])
        if not rows:
            continue
        columns = list(rows[0].keys())
        worksheet.append(columns)
        for row in rows:
            worksheet.append([_excel_cell_value(row.get(column)) for column in columns])

    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(excel_path)


def save_output_workbook(path: str | Path, sheets: Dict[str, List[Dict[str, Any]]]) -> tuple[bool, str]:
    try:
        write_output_workbook(path, sheets)
    except PermissionError as exc:
        return False, str(exc)
    return True, ""
