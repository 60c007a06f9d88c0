"""Branch coverage matching for multi-item demand."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable

from .models import (
    BranchCoverage,
    BranchKey,
    CoverageResult,
    DemandLine,
    InventoryFilter,
    InventoryIndex,
    ItemCoverage,
)
from .normalize import dedupe_demand_lines


def _rank_key(branch: BranchCoverage) -> tuple[bool, int, str]:
    return (not branch.has_all, -branch.count, branch.branch_id)


def coverage_match(
    index: InventoryIndex,
    demand_lines: Iterable[DemandLine],
    inventory_filter: InventoryFilter | None = None,
) -> CoverageResult:
    """Rank branches by how many demand lines their stock satisfies.

    The dataset is scanned once regardless of how many lines are demanded.
    Quantities of the same code at one branch are summed across warehouse
    rows. A line is satisfied when the branch total is at least its
    `min_quantity`; codes the branch does not stock count as `0`.

    Every branch present in the filtered dataset is reported, including those
    holding none of the demanded codes. Ranking is full coverage first, then
    satisfied count descending, then `branch_id` ascending; branches still
    tied keep dataset order.
    """

    lines = dedupe_demand_lines(demand_lines)
    if not lines:
        return []

    thresholds = {line.item_code: line.min_quantity for line in lines}
    active_filter = inventory_filter if inventory_filter is not None and not inventory_filter.is_empty else None

    aggregates: dict[BranchKey, defaultdict[str, float]] = {}
    for record in index.records:
        if active_filter is not None and not active_filter.matches(record):
            continue
        branch = record.branch_key
        totals = aggregates.get(branch)
        if totals is None:
            totals = aggregates[branch] = defaultdict(float)
        code = record.code_key
        if code in thresholds:
            totals[code] += record.quantity_value

    ranked: CoverageResult = []
    for branch, totals in aggregates.items():
        items = tuple(
            ItemCoverage(
                code=line.item_code,
                quantity=totals.get(line.item_code, 0.0),
                min_quantity=line.min_quantity,
                satisfied=totals.get(line.item_code, 0.0) >= line.min_quantity,
            )
            for line in lines
        )
        count = sum(1 for item in items if item.satisfied)
        ranked.append(BranchCoverage(branch=branch, items=items, count=count, has_all=count == len(lines)))

    # sorted() is stable, so equal keys keep first-seen branch order.
    return sorted(ranked, key=_rank_key)


def full_coverage_count(result: CoverageResult) -> int:
    """Count branches that satisfy every demand line."""

    return sum(1 for branch in result if branch.has_all)
