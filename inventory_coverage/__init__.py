"""Public API exports for inventory normalization, lookup and coverage."""

from .cells import normalize_code, parse_quantity
from .coverage import coverage_match, full_coverage_count
from .errors import DatasetNotFoundError, IndexBuildCancelled, IngestionError, InventoryError
from .index import IndexPublisher, build_index, sort_branch_ids
from .ingest import IngestResult, ingest_file, read_records
from .lookup import found_count, lookup, qualified_records
from .models import (
    ActiveInventory,
    BranchCoverage,
    BranchKey,
    CanonicalRecord,
    CatalogEntry,
    CoverageResult,
    DataIssue,
    Dataset,
    DatasetMeta,
    DemandLine,
    InventoryFilter,
    InventoryIndex,
    ItemCoverage,
    LookupEntry,
    LookupResult,
)
from .normalize import normalize_record, normalize_records, parse_codes
from .storage import DatasetStore

__all__ = [
    "ActiveInventory",
    "BranchCoverage",
    "BranchKey",
    "CanonicalRecord",
    "CatalogEntry",
    "CoverageResult",
    "DataIssue",
    "Dataset",
    "DatasetMeta",
    "DatasetNotFoundError",
    "DatasetStore",
    "DemandLine",
    "IndexBuildCancelled",
    "IndexPublisher",
    "IngestResult",
    "IngestionError",
    "InventoryError",
    "InventoryFilter",
    "InventoryIndex",
    "ItemCoverage",
    "LookupEntry",
    "LookupResult",
    "build_index",
    "coverage_match",
    "found_count",
    "full_coverage_count",
    "ingest_file",
    "lookup",
    "normalize_code",
    "normalize_record",
    "normalize_records",
    "parse_codes",
    "parse_quantity",
    "qualified_records",
    "read_records",
    "sort_branch_ids",
]
