"""Read inventory extracts (Excel or CSV) into raw row dictionaries.

Readers return rows keyed by the file's own header text with no
transformation beyond filling empty cells with `""`. Column mapping happens
in `normalize`. A file that cannot be decoded raises `IngestionError` before
any row is returned.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from openpyxl import load_workbook

from . import settings
from .errors import IngestionError
from .models import DataIssue, Dataset
from .normalize import CANONICAL_FIELDS, map_columns, normalize_records

logger = logging.getLogger(__name__)

RawRow = dict[str, Any]


@dataclass(slots=True)
class IngestResult:
    """Raw rows read from one file plus header diagnostics."""

    path: Path
    headers: list[str]
    rows: list[RawRow]
    column_map: dict[str, str | None]
    size_bytes: int
    issues: list[DataIssue] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.rows)


def _unique_headers(raw_headers: list[Any]) -> list[str]:
    """Name blank headers `col_<n>` and suffix repeats with `_1`, `_2`, ..."""

    headers: list[str] = []
    seen: dict[str, int] = {}
    for position, raw in enumerate(raw_headers, start=1):
        header = "" if raw is None else str(raw).strip()
        if not header:
            header = f"col_{position}"
        if header in seen:
            seen[header] += 1
            header = f"{header}_{seen[header]}"
        else:
            seen[header] = 0
        headers.append(header)
    return headers


def _is_blank(values: list[Any] | tuple[Any, ...]) -> bool:
    return all(value is None or (isinstance(value, str) and value.strip() == "") for value in values)


def read_excel(xlsx_path: Path) -> tuple[list[str], list[RawRow]]:
    """Read the first worksheet: row 1 holds headers, later rows hold data.

    Empty cells become `""` and fully blank rows are skipped.
    """

    try:
        workbook = load_workbook(xlsx_path, read_only=True, data_only=True)
    except Exception as exc:
        raise IngestionError(f"Cannot read Excel file {xlsx_path.name}: {exc}") from exc

    try:
        if not workbook.worksheets:
            raise IngestionError(f"Excel file {xlsx_path.name} has no worksheets")
        sheet_rows = workbook.worksheets[0].iter_rows(values_only=True)
        header_row = next(sheet_rows, None)
        if header_row is None or _is_blank(header_row):
            raise IngestionError(f"Excel file {xlsx_path.name} has no header row")
        headers = _unique_headers(list(header_row))

        rows: list[RawRow] = []
        for values in sheet_rows:
            if _is_blank(values):
                continue
            row: RawRow = {}
            for position, header in enumerate(headers):
                value = values[position] if position < len(values) else None
                row[header] = "" if value is None else value
            rows.append(row)
    except IngestionError:
        raise
    except Exception as exc:
        # Read-only workbooks parse sheet XML lazily, so corruption can surface here.
        raise IngestionError(f"Cannot read Excel file {xlsx_path.name}: {exc}") from exc
    finally:
        workbook.close()
    return headers, rows


def read_csv(csv_path: Path) -> tuple[list[str], list[RawRow]]:
    """Read a CSV extract with a header row. Missing cells become `""`."""

    try:
        with csv_path.open("r", encoding="utf-8-sig", newline="") as handle:
            reader = csv.reader(handle)
            header_row = next(reader, None)
            if not header_row or _is_blank(header_row):
                raise IngestionError(f"CSV file {csv_path.name} has no header row")
            headers = _unique_headers(header_row)
            rows: list[RawRow] = []
            for values in reader:
                if _is_blank(values):
                    continue
                rows.append(
                    {header: values[position] if position < len(values) else "" for position, header in enumerate(headers)}
                )
    except (UnicodeDecodeError, csv.Error) as exc:
        raise IngestionError(f"Cannot read CSV file {csv_path.name}: {exc}") from exc
    return headers, rows


def read_records(path: str | Path) -> IngestResult:
    """Read one extract into raw rows, dispatching on the file suffix.

    Raises:
        IngestionError: if the file is missing, has an unsupported suffix or
            cannot be decoded.
    """

    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise IngestionError(f"Inventory file not found: {file_path}")

    suffix = file_path.suffix.lower()
    if suffix in settings.EXCEL_SUFFIXES:
        headers, rows = read_excel(file_path)
    elif suffix in settings.CSV_SUFFIXES:
        headers, rows = read_csv(file_path)
    else:
        supported = ", ".join(sorted(settings.SUPPORTED_SUFFIXES))
        raise IngestionError(f"Unsupported file type {suffix or '(none)'}; expected one of {supported}")

    column_map = map_columns(headers)
    issues = [
        DataIssue(
            code="missing_column",
            message=f"No column matched canonical field {canonical}; values default to empty",
            field=canonical,
        )
        for canonical in CANONICAL_FIELDS
        if column_map[canonical] is None
    ]
    for issue in issues:
        logger.warning(f"{file_path.name}: {issue.message}")

    logger.info(f"Read {len(rows)} rows from {file_path.name}")
    return IngestResult(
        path=file_path,
        headers=headers,
        rows=rows,
        column_map=column_map,
        size_bytes=file_path.stat().st_size,
        issues=issues,
    )


def ingest_file(path: str | Path) -> tuple[Dataset, IngestResult]:
    """Read and normalize one extract."""

    result = read_records(path)
    return normalize_records(result.rows), result
