"""Header matching and field-level normalization for raw inventory rows."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .cells import cell_text, normalize_code
from .models import CanonicalRecord, Dataset, DemandLine

CANONICAL_FIELDS = (
    "item_code",
    "item_name",
    "branch_id",
    "province",
    "warehouse_code",
    "unit",
    "quantity",
)

# Case-insensitive substrings; a header matches a field when it contains any of them.
FIELD_ALIASES: Mapping[str, tuple[str, ...]] = {
    "item_code": ("mã hàng", "ma hang", "mahang", "item code", "itemcode", "code", "sku"),
    "item_name": ("tên hàng", "ten hang", "tenhang", "product name", "name", "product"),
    "branch_id": ("chi nhánh", "chi nhanh", "chinhanh", "branch"),
    "province": ("tỉnh thành", "tinh thanh", "tỉnh", "tinh", "province", "city"),
    "warehouse_code": ("mã kho", "ma kho", "makho", "warehouse"),
    "unit": ("đvt", "dvt", "unit", "đơn vị", "don vi"),
    "quantity": ("cuối kỳ", "cuoi ky", "cuoiky", "tồn", "ton kho", "quantity", "qty", "số lượng"),
}

_CODE_SEPARATOR_RE = re.compile(r"[\n,;，、\s]+")


def _fold_header(header: Any) -> str:
    """Lowercase a header in composed Unicode form so accented aliases match."""

    return unicodedata.normalize("NFC", str(header)).lower()


def match_column(headers: Iterable[Any], field: str) -> Any | None:
    """Return the first header that matches a canonical field, or None.

    Headers are scanned in their given order, so when two columns both match
    (e.g. "Warehouse Code" and "Item Code" for `item_code`) the leftmost wins.
    """

    aliases = FIELD_ALIASES[field]
    for header in headers:
        if header is None:
            continue
        folded = _fold_header(header)
        if any(alias in folded for alias in aliases):
            return header
    return None


def map_columns(headers: Sequence[Any]) -> dict[str, Any | None]:
    """Resolve every canonical field against one header row."""

    return {field: match_column(headers, field) for field in CANONICAL_FIELDS}


def _apply_columns(raw: Mapping[Any, Any], columns: Mapping[str, Any | None]) -> CanonicalRecord:
    values = {
        field: "" if header is None else cell_text(raw.get(header))
        for field, header in columns.items()
    }
    return CanonicalRecord(**values)


def normalize_record(raw: Mapping[Any, Any]) -> CanonicalRecord:
    """Convert one raw row into a canonical record. Never raises."""

    return _apply_columns(raw, map_columns(list(raw.keys())))


def normalize_records(raw_records: Iterable[Mapping[Any, Any]]) -> Dataset:
    """Normalize a sequence of raw rows, preserving order.

    Each row is resolved against its own keys. Rows sharing a key layout (the
    usual case for one sheet) reuse the same column mapping.
    """

    layouts: dict[tuple[Any, ...], dict[str, Any | None]] = {}
    records: list[CanonicalRecord] = []
    for raw in raw_records:
        layout = tuple(raw.keys())
        columns = layouts.get(layout)
        if columns is None:
            columns = layouts[layout] = map_columns(layout)
        records.append(_apply_columns(raw, columns))
    return tuple(records)


def parse_codes(text: str) -> list[str]:
    """Split free-form code input into normalized, de-duplicated item codes.

    Accepts newlines, commas, semicolons, whitespace and the fullwidth and
    ideographic commas as separators. First occurrence keeps its position.
    """

    codes: list[str] = []
    seen: set[str] = set()
    for token in _CODE_SEPARATOR_RE.split(text or ""):
        code = normalize_code(token)
        if not code or code in seen:
            continue
        seen.add(code)
        codes.append(code)
    return codes


def dedupe_codes(codes: Iterable[Any]) -> list[str]:
    """Normalize codes and drop empties and repeats, keeping request order."""

    unique: list[str] = []
    seen: set[str] = set()
    for raw_code in codes:
        code = normalize_code(raw_code)
        if not code or code in seen:
            continue
        seen.add(code)
        unique.append(code)
    return unique


def dedupe_demand_lines(lines: Iterable[DemandLine]) -> list[DemandLine]:
    """Keep the first demand line per item code; later duplicates are dropped."""

    unique: list[DemandLine] = []
    seen: set[str] = set()
    for line in lines:
        if line.item_code in seen:
            continue
        seen.add(line.item_code)
        unique.append(line)
    return unique
