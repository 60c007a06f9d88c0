"""Point lookup of item codes against an inventory index."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .models import CanonicalRecord, InventoryFilter, InventoryIndex, LookupEntry, LookupResult
from .normalize import dedupe_codes


def lookup(
    index: InventoryIndex,
    codes: Iterable[Any],
    inventory_filter: InventoryFilter | None = None,
) -> LookupResult:
    """Return the rows and summed quantity for each requested code.

    Codes are normalized and de-duplicated; the result follows request order.
    A code with no rows is reported with an empty record tuple and a total of
    `0.0` rather than omitted.
    """

    result: LookupResult = {}
    for code in dedupe_codes(codes):
        records = index.by_code.get(code, ())
        if inventory_filter is not None and not inventory_filter.is_empty:
            records = tuple(record for record in records if inventory_filter.matches(record))
        total = sum((record.quantity_value for record in records), 0.0)
        result[code] = LookupEntry(code=code, records=records, total=total)
    return result


def qualified_records(entry: LookupEntry, min_quantity: float | None) -> tuple[CanonicalRecord, ...]:
    """Return the rows of an entry that individually hold at least `min_quantity`.

    `None` means no threshold, so every row qualifies.
    """

    if min_quantity is None:
        return entry.records
    return tuple(record for record in entry.records if record.quantity_value >= min_quantity)


def found_count(result: LookupResult) -> int:
    """Count requested codes that matched at least one row."""

    return sum(1 for entry in result.values() if entry.found)
