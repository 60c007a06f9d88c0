from __future__ import annotations

"""Ingestion tests for Excel and CSV extracts.

These cover header handling, empty-cell defaults and the all-or-nothing
failure mode when a file cannot be decoded.
"""

from pathlib import Path

import pytest
from openpyxl import Workbook

from inventory_coverage.errors import IngestionError
from inventory_coverage.ingest import ingest_file, read_records

VIETNAMESE_HEADERS = ["Mã hàng", "Tên hàng", "Chi nhánh", "Tỉnh thành", "Mã kho", "ĐVT", "Cuối kỳ"]


def _issue_codes(issues: list[object]) -> set[str]:
    return {issue.code for issue in issues}


def _write_workbook(path: Path, rows: list[list[object]]) -> Path:
    workbook = Workbook()
    sheet = workbook.active
    for row in rows:
        sheet.append(row)
    workbook.save(path)
    return path


def test_read_records_reads_first_sheet_with_empty_cell_defaults(tmp_path: Path) -> None:
    """Excel rows come back keyed by header with None cells replaced by ""."""
    xlsx_path = _write_workbook(
        tmp_path / "ton_kho.xlsx",
        [
            VIETNAMESE_HEADERS,
            ["A1", "Widget", "01", "HN", "K1", "Cái", 50],
            [None, None, None, None, None, None, None],
            ["B2", "Gadget", "02", "HCM", None, "Hộp", 12.5],
        ],
    )

    result = read_records(xlsx_path)

    assert result.headers == VIETNAMESE_HEADERS
    assert result.total_rows == 2
    assert result.rows[0]["Cuối kỳ"] == 50
    assert result.rows[1]["Mã kho"] == ""
    assert result.issues == []
    assert result.column_map["item_code"] == "Mã hàng"
    assert result.size_bytes == xlsx_path.stat().st_size


def test_ingest_file_normalizes_excel_rows(tmp_path: Path) -> None:
    xlsx_path = _write_workbook(
        tmp_path / "stock.xlsx",
        [
            VIETNAMESE_HEADERS,
            [" a1 ", "Widget", "01", "HN", "K1", "Cái", 50],
        ],
    )

    dataset, result = ingest_file(xlsx_path)

    assert len(dataset) == 1
    record = dataset[0]
    assert record.item_code == "a1"
    assert record.code_key == "A1"
    assert record.quantity == "50"
    assert record.quantity_value == 50
    assert result.path == xlsx_path


def test_read_records_names_blank_and_duplicate_headers(tmp_path: Path) -> None:
    xlsx_path = _write_workbook(
        tmp_path / "dupes.xlsx",
        [
            ["SKU", None, "Qty", "Qty"],
            ["A1", "x", 1, 2],
        ],
    )
    result = read_records(xlsx_path)
    assert result.headers == ["SKU", "col_2", "Qty", "Qty_1"]
    assert result.rows[0] == {"SKU": "A1", "col_2": "x", "Qty": 1, "Qty_1": 2}


def test_read_records_reports_unmatched_canonical_fields(tmp_path: Path) -> None:
    csv_path = tmp_path / "partial.csv"
    csv_path.write_text("sku,qty\nA1,5\n", encoding="utf-8")

    result = read_records(csv_path)

    assert _issue_codes(result.issues) == {"missing_column"}
    assert {issue.field for issue in result.issues} == {
        "item_name",
        "branch_id",
        "province",
        "warehouse_code",
        "unit",
    }


def test_read_records_csv_fills_short_rows_and_skips_blank_rows(tmp_path: Path) -> None:
    csv_path = tmp_path / "stock.csv"
    csv_path.write_text(
        "\ufeffItem Code,Product Name,Branch,Province,Warehouse,Unit,Quantity\n"
        "A1,Widget,01,HN,K1,pcs,50\n"
        ",,,,,,\n"
        "B2,Gadget,02\n",
        encoding="utf-8",
    )

    dataset, result = ingest_file(csv_path)

    assert result.headers[0] == "Item Code"
    assert result.total_rows == 2
    assert result.rows[1]["Quantity"] == ""
    assert [record.item_code for record in dataset] == ["A1", "B2"]
    assert dataset[1].quantity_value == 0


def test_read_records_rejects_unsupported_suffix(tmp_path: Path) -> None:
    path = tmp_path / "stock.txt"
    path.write_text("sku,qty\n", encoding="utf-8")
    with pytest.raises(IngestionError, match="Unsupported file type"):
        read_records(path)


def test_read_records_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(IngestionError, match="not found"):
        read_records(tmp_path / "missing.xlsx")


def test_read_records_wraps_corrupt_workbook(tmp_path: Path) -> None:
    """Undecodable workbooks fail as one ingestion error, with no partial rows."""
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"this is not a zip archive")
    with pytest.raises(IngestionError, match="Cannot read Excel file"):
        read_records(path)


def test_read_records_wraps_undecodable_csv(tmp_path: Path) -> None:
    path = tmp_path / "latin1.csv"
    path.write_bytes("sku,tên\nA1,\xff\xfe\n".encode("latin-1"))
    with pytest.raises(IngestionError, match="Cannot read CSV file"):
        read_records(path)


def test_read_records_requires_header_row(tmp_path: Path) -> None:
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(IngestionError, match="no header row"):
        read_records(path)


def test_ingestion_error_is_a_value_error() -> None:
    assert issubclass(IngestionError, ValueError)
