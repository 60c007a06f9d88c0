"""Command-line runner for inventory lookup and branch coverage.

Ingests spreadsheet extracts into a local dataset store, then answers lookup
and coverage queries against a stored dataset, writing a structured JSON
report to stdout or to `--output`.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from inventory_coverage import (
    BranchCoverage,
    CanonicalRecord,
    DatasetMeta,
    DatasetStore,
    DemandLine,
    InventoryError,
    InventoryFilter,
    InventoryIndex,
    build_index,
    coverage_match,
    found_count,
    full_coverage_count,
    ingest_file,
    lookup,
    parse_codes,
)
from inventory_coverage import settings


def format_size(size_bytes: int) -> str:
    """Render a byte count as KB below one megabyte, MB above."""

    if size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.0f} KB"
    return f"{size_bytes / 1024 / 1024:.1f} MB"


def parse_demand_arg(value: str) -> DemandLine:
    """Parse `CODE` or `CODE=MIN` into a demand line."""

    code, separator, minimum = value.partition("=")
    if not code.strip():
        raise ValueError(f"Demand item has no code: {value!r}")
    if not separator or not minimum.strip():
        return DemandLine(item_code=code)
    return DemandLine(item_code=code, min_quantity=float(minimum))


def _filter_to_dict(inventory_filter: InventoryFilter) -> dict[str, str | None]:
    return {"province": inventory_filter.province, "branch_id": inventory_filter.branch_id}


def _record_to_dict(record: CanonicalRecord) -> dict[str, str]:
    return {
        "item_code": record.item_code,
        "item_name": record.item_name,
        "branch_id": record.branch_id,
        "province": record.province,
        "warehouse_code": record.warehouse_code,
        "unit": record.unit,
        "quantity": record.quantity,
    }


def _meta_to_dict(meta: DatasetMeta) -> dict[str, Any]:
    return {
        "dataset_id": meta.dataset_id,
        "name": meta.name,
        "row_count": meta.row_count,
        "size_bytes": meta.size_bytes,
        "size": format_size(meta.size_bytes),
        "uploaded_at": meta.uploaded_at.isoformat(),
    }


def _branch_to_dict(branch: BranchCoverage, index: InventoryIndex) -> dict[str, Any]:
    return {
        "branch_id": branch.branch_id,
        "province": branch.province,
        "count": branch.count,
        "has_all": branch.has_all,
        "items": [
            {
                "code": item.code,
                "item_name": index.catalog[item.code].item_name if item.code in index.catalog else "",
                "quantity": item.quantity,
                "min_quantity": item.min_quantity,
                "satisfied": item.satisfied,
            }
            for item in branch.items
        ],
    }


def _metadata(dataset_id: str, inventory_filter: InventoryFilter) -> dict[str, Any]:
    return {
        "generated_at_utc": datetime.now(timezone.utc).isoformat(),
        "dataset_id": dataset_id,
        "filter": _filter_to_dict(inventory_filter),
    }


def build_lookup_report(
    *,
    index: InventoryIndex,
    dataset_id: str,
    codes: list[str],
    inventory_filter: InventoryFilter,
) -> dict[str, Any]:
    """Build the lookup report payload for a list of item codes."""

    result = lookup(index, codes, inventory_filter)
    items = []
    for code, entry in result.items():
        catalog_entry = index.catalog.get(code)
        items.append(
            {
                "code": code,
                "item_name": catalog_entry.item_name if catalog_entry else "",
                "unit": catalog_entry.unit if catalog_entry else "",
                "found": entry.found,
                "total": entry.total,
                "records": [_record_to_dict(record) for record in entry.records],
            }
        )

    return {
        "metadata": _metadata(dataset_id, inventory_filter),
        "summary": {
            "requested_count": len(result),
            "found_count": found_count(result),
        },
        "items": items,
    }


def build_coverage_report(
    *,
    index: InventoryIndex,
    dataset_id: str,
    demand_lines: list[DemandLine],
    inventory_filter: InventoryFilter,
) -> dict[str, Any]:
    """Build the coverage report payload for a set of demand lines."""

    result = coverage_match(index, demand_lines, inventory_filter)
    demanded = []
    seen: set[str] = set()
    for line in demand_lines:
        if line.item_code in seen:
            continue
        seen.add(line.item_code)
        demanded.append({"code": line.item_code, "min_quantity": line.min_quantity})

    return {
        "metadata": {
            **_metadata(dataset_id, inventory_filter),
            "comparison_rule": "A line is satisfied when the branch total is greater than or equal to its minimum.",
        },
        "summary": {
            "branch_count": len(result),
            "full_coverage_count": full_coverage_count(result),
        },
        "demand": demanded,
        "branches": [_branch_to_dict(branch, index) for branch in result],
    }


def write_report(report: dict[str, Any], *, output_path: Path | None) -> None:
    """Write report JSON to a file, or to stdout when no path is given."""

    text = json.dumps(report, indent=2, ensure_ascii=False) + "\n"
    if output_path is None:
        sys.stdout.write(text)
        return
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding="utf-8")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Look up item stock and branch coverage in inventory extracts.")
    parser.add_argument("--store", type=Path, default=settings.STORE_DIR, help="Dataset store directory")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="Logging level (default from environment)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Read an Excel/CSV extract and store it as a dataset")
    ingest.add_argument("file", type=Path, help="Path to .xlsx/.xlsm/.csv extract")
    ingest.add_argument("--name", help="Display name (defaults to the file name)")

    subparsers.add_parser("datasets", help="List stored datasets, newest first")

    delete = subparsers.add_parser("delete", help="Delete a stored dataset")
    delete.add_argument("dataset_id")

    for name, help_text in (("lookup", "Show rows and totals per item code"), ("coverage", "Rank branches by demand coverage")):
        command = subparsers.add_parser(name, help=help_text)
        command.add_argument("dataset_id")
        if name == "lookup":
            command.add_argument("codes", nargs="+", help="Item codes (comma/space separated lists are accepted)")
        else:
            command.add_argument("items", nargs="+", help="Demand as CODE or CODE=MIN")
        command.add_argument("--province", help="Only rows in this province")
        command.add_argument("--branch", help="Only rows of this branch id")
        command.add_argument("--output", type=Path, help="Output JSON path (default: stdout)")
    return parser


def _load_index(store: DatasetStore, dataset_id: str) -> InventoryIndex:
    return build_index(store.load(dataset_id))


def run(args: argparse.Namespace) -> int:
    """Execute one parsed command."""

    store = DatasetStore(args.store)

    if args.command == "ingest":
        dataset, result = ingest_file(args.file)
        meta = store.save(args.name or result.path.name, dataset, size_bytes=result.size_bytes)
        payload = _meta_to_dict(meta)
        payload["issues"] = [
            {"code": issue.code, "field": issue.field, "message": issue.message} for issue in result.issues
        ]
        write_report(payload, output_path=None)
        return 0

    if args.command == "datasets":
        write_report({"datasets": [_meta_to_dict(meta) for meta in store.list_meta()]}, output_path=None)
        return 0

    if args.command == "delete":
        store.delete(args.dataset_id)
        return 0

    inventory_filter = InventoryFilter(province=args.province, branch_id=args.branch)
    index = _load_index(store, args.dataset_id)
    if args.command == "lookup":
        codes = parse_codes(" ".join(args.codes))
        report = build_lookup_report(
            index=index,
            dataset_id=args.dataset_id,
            codes=codes,
            inventory_filter=inventory_filter,
        )
    else:
        report = build_coverage_report(
            index=index,
            dataset_id=args.dataset_id,
            demand_lines=[parse_demand_arg(item) for item in args.items],
            inventory_filter=inventory_filter,
        )
    write_report(report, output_path=args.output)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for command-line execution."""

    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    try:
        return run(args)
    except InventoryError as exc:
        logging.getLogger(__name__).error(str(exc))
        return 1
    except ValueError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    raise SystemExit(main())
