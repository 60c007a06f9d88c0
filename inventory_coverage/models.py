"""Core typed models shared by normalization, indexing, lookup and coverage."""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TypeAlias

from .cells import normalize_code, parse_quantity


@dataclass(frozen=True, slots=True)
class DataIssue:
    """Structured data-quality note emitted during ingestion."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True, slots=True)
class BranchKey:
    """Compound branch identity; equal branch ids in different provinces differ."""

    branch_id: str
    province: str


@dataclass(frozen=True, slots=True)
class CanonicalRecord:
    """Canonical representation of one inventory row after normalization.

    `item_code` keeps the source casing for display. Comparisons go through
    `code_key`, and `quantity` stays raw until `quantity_value` is read.
    """

    item_code: str
    item_name: str
    branch_id: str
    province: str
    warehouse_code: str
    unit: str
    quantity: str

    @property
    def code_key(self) -> str:
        """Return the trimmed, uppercased item code used for matching."""

        return normalize_code(self.item_code)

    @property
    def quantity_value(self) -> float:
        """Return the numeric quantity, `0.0` when the cell is not numeric."""

        return parse_quantity(self.quantity)

    @property
    def branch_key(self) -> BranchKey:
        return BranchKey(branch_id=self.branch_id, province=self.province)


Dataset: TypeAlias = tuple[CanonicalRecord, ...]


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """First-seen display attributes of one item code."""

    item_name: str
    unit: str


@dataclass(frozen=True, slots=True)
class InventoryIndex:
    """Immutable lookup structures derived from one dataset.

    Rebuilt wholesale by `build_index` whenever the dataset changes.
    """

    records: Dataset
    by_code: Mapping[str, tuple[CanonicalRecord, ...]]
    catalog: Mapping[str, CatalogEntry]
    provinces: tuple[str, ...]
    branches: tuple[str, ...]

    def __post_init__(self) -> None:
        # Freeze plain dicts handed in by the builder.
        if not isinstance(self.by_code, MappingProxyType):
            object.__setattr__(self, "by_code", MappingProxyType(dict(self.by_code)))
        if not isinstance(self.catalog, MappingProxyType):
            object.__setattr__(self, "catalog", MappingProxyType(dict(self.catalog)))

    @property
    def record_count(self) -> int:
        return len(self.records)


@dataclass(frozen=True, slots=True)
class DemandLine:
    """One requested item code with its minimum quantity threshold."""

    item_code: str
    min_quantity: float | None = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(self, "item_code", normalize_code(self.item_code))
        if self.min_quantity is None:
            object.__setattr__(self, "min_quantity", 0.0)
            return
        try:
            threshold = float(self.min_quantity)
        except (TypeError, ValueError):
            raise ValueError(f"Minimum quantity is not numeric: {self.min_quantity!r}") from None
        if not math.isfinite(threshold) or threshold < 0:
            raise ValueError(f"Minimum quantity must be a non-negative number: {self.min_quantity!r}")
        object.__setattr__(self, "min_quantity", threshold)


@dataclass(frozen=True, slots=True)
class InventoryFilter:
    """Optional exact-equality constraints applied before lookup and coverage."""

    province: str | None = None
    branch_id: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.province and not self.branch_id

    def matches(self, record: CanonicalRecord) -> bool:
        """Return whether a record passes both constraints."""

        if self.province and record.province != self.province:
            return False
        if self.branch_id and record.branch_id != self.branch_id:
            return False
        return True


@dataclass(frozen=True, slots=True)
class LookupEntry:
    """Rows found for one requested code and their summed quantity."""

    code: str
    records: tuple[CanonicalRecord, ...]
    total: float

    @property
    def found(self) -> bool:
        return bool(self.records)


LookupResult: TypeAlias = dict[str, LookupEntry]


@dataclass(frozen=True, slots=True)
class ItemCoverage:
    """Aggregated quantity of one demanded item at one branch."""

    code: str
    quantity: float
    min_quantity: float
    satisfied: bool


@dataclass(frozen=True, slots=True)
class BranchCoverage:
    """Coverage status of one branch against every demand line."""

    branch: BranchKey
    items: tuple[ItemCoverage, ...]
    count: int
    has_all: bool

    @property
    def branch_id(self) -> str:
        return self.branch.branch_id

    @property
    def province(self) -> str:
        return self.branch.province


CoverageResult: TypeAlias = list[BranchCoverage]


@dataclass(frozen=True, slots=True)
class DatasetMeta:
    """Storage-side metadata for one persisted dataset."""

    dataset_id: str
    name: str
    row_count: int
    size_bytes: int
    uploaded_at: datetime


@dataclass(frozen=True, slots=True)
class ActiveInventory:
    """The published `(dataset, index)` pair a caller queries against."""

    dataset_id: str
    dataset: Dataset
    index: InventoryIndex
    generation: int = field(default=0, compare=False)
