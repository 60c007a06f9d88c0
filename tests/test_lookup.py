"""Tests for point lookup of item codes.

Handcrafted datasets keep each rule (ordering, filtering, totals, absence)
visible in isolation.
"""

from __future__ import annotations

import pytest

from inventory_coverage.cells import normalize_code, parse_quantity
from inventory_coverage.index import build_index
from inventory_coverage.lookup import found_count, lookup, qualified_records
from inventory_coverage.models import CanonicalRecord, InventoryFilter, InventoryIndex


def _record(code: str, name: str, branch: str, province: str, quantity: str, warehouse: str = "K1") -> CanonicalRecord:
    return CanonicalRecord(
        item_code=code,
        item_name=name,
        branch_id=branch,
        province=province,
        warehouse_code=warehouse,
        unit="pcs",
        quantity=quantity,
    )


ROW_1 = _record("A1", "Widget", "01", "HN", "50")
ROW_2 = _record("A1", "Widget", "02", "HCM", "150")
ROW_3 = _record("B2", "Gadget", "01", "HN", "20")


@pytest.fixture
def index() -> InventoryIndex:
    return build_index([ROW_1, ROW_2, ROW_3])


def test_lookup_scenario_found_and_missing_codes(index: InventoryIndex) -> None:
    """Found codes return their rows and total; unknown codes return an empty entry."""
    result = lookup(index, ["A1", "Z9"])

    assert list(result) == ["A1", "Z9"]
    assert result["A1"].records == (ROW_1, ROW_2)
    assert result["A1"].total == 200
    assert result["Z9"].records == ()
    assert result["Z9"].total == 0
    assert not result["Z9"].found


def test_lookup_normalizes_and_dedupes_requested_codes(index: InventoryIndex) -> None:
    """Requested codes collapse after trim + uppercase and keep request order."""
    result = lookup(index, ["b2", " a1 ", "B2", "A1"])
    assert list(result) == ["B2", "A1"]
    assert result["B2"].records == (ROW_3,)


def test_lookup_applies_filter_by_exact_equality(index: InventoryIndex) -> None:
    by_province = lookup(index, ["A1"], InventoryFilter(province="HCM"))
    assert by_province["A1"].records == (ROW_2,)
    assert by_province["A1"].total == 150

    by_branch = lookup(index, ["A1", "B2"], InventoryFilter(branch_id="01"))
    assert by_branch["A1"].records == (ROW_1,)
    assert by_branch["B2"].total == 20

    no_match = lookup(index, ["A1"], InventoryFilter(province="hn"))
    assert no_match["A1"].records == ()
    assert no_match["A1"].total == 0


def test_lookup_with_empty_filter_matches_unfiltered(index: InventoryIndex) -> None:
    assert lookup(index, ["A1"], InventoryFilter()) == lookup(index, ["A1"])
    assert lookup(index, ["A1"], InventoryFilter(province="", branch_id="")) == lookup(index, ["A1"])


def test_lookup_records_match_brute_force_subset() -> None:
    """Lookup returns exactly the dataset rows whose normalized code matches."""
    dataset = [
        _record("a1", "Widget", "01", "HN", "5"),
        _record("A1 ", "Widget", "02", "HN", "n/a"),
        _record("B2", "Gadget", "01", "HN", "1,000"),
        _record(" A1", "Widget", "01", "HN", "7.5", warehouse="K2"),
    ]
    index = build_index(dataset)
    result = lookup(index, ["A1", "B2"], InventoryFilter(branch_id="01"))

    for code, entry in result.items():
        expected = tuple(
            record for record in dataset if normalize_code(record.item_code) == code and record.branch_id == "01"
        )
        assert entry.records == expected
        assert entry.total == sum(parse_quantity(record.quantity) for record in expected)

    assert result["A1"].total == 12.5
    assert result["B2"].total == 1000


def test_qualified_records_filters_rows_by_own_quantity(index: InventoryIndex) -> None:
    entry = lookup(index, ["A1"])["A1"]
    assert qualified_records(entry, 100) == (ROW_2,)
    assert qualified_records(entry, 50) == (ROW_1, ROW_2)
    assert qualified_records(entry, None) == (ROW_1, ROW_2)


def test_found_count_counts_codes_with_rows(index: InventoryIndex) -> None:
    assert found_count(lookup(index, ["A1", "B2", "Z9"])) == 2
    assert found_count(lookup(index, [])) == 0
