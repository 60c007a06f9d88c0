"""Index construction over canonical records and publication of the active snapshot.

`build_index` is a pure, single-pass function. `IndexPublisher` is the one
stateful helper: it owns the active `(dataset, index)` pair for a caller and
guarantees that when builds overlap, only the most recently requested one is
ever published.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Iterable

from . import settings
from .errors import IndexBuildCancelled
from .models import ActiveInventory, CanonicalRecord, CatalogEntry, Dataset, InventoryIndex

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


def _as_number(value: str) -> float | None:
    # float() also accepts digit-group underscores ("1_0"); ids with them are text.
    if "_" in value:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def sort_branch_ids(branch_ids: Iterable[str]) -> tuple[str, ...]:
    """Sort branch ids numerically when all of them are numbers, else as text."""

    values = list(branch_ids)
    numbers = [_as_number(value) for value in values]
    if values and all(number is not None for number in numbers):
        # Ties such as "01" and "1" fall back to text order.
        ordered = sorted(zip(numbers, values))
        return tuple(value for _, value in ordered)
    return tuple(sorted(values))


def build_index(
    dataset: Iterable[CanonicalRecord],
    *,
    should_cancel: CancelCheck | None = None,
    check_interval: int | None = None,
) -> InventoryIndex:
    """Build lookup and dimension structures in one pass over the dataset.

    Records keep their dataset order inside each `by_code` bucket, and the
    first record seen for a code fixes its catalog name and unit. Rows with a
    blank code stay in `records` (coverage still sees their branch) but are
    not indexed by code.

    Raises:
        TypeError: if an element is not a `CanonicalRecord` (raw rows must be
            normalized first).
        IndexBuildCancelled: if `should_cancel` reports the build superseded.
    """

    interval = check_interval or settings.CANCEL_CHECK_INTERVAL
    records: Dataset = tuple(dataset)
    by_code: dict[str, list[CanonicalRecord]] = {}
    catalog: dict[str, CatalogEntry] = {}
    provinces: set[str] = set()
    branches: set[str] = set()

    for position, record in enumerate(records):
        if should_cancel is not None and position % interval == 0 and should_cancel():
            raise IndexBuildCancelled(f"Index build cancelled after {position} records")
        if not isinstance(record, CanonicalRecord):
            raise TypeError(
                f"build_index expects CanonicalRecord values, got {type(record).__name__} at position {position}"
            )

        code = record.code_key
        if code:
            bucket = by_code.get(code)
            if bucket is None:
                by_code[code] = [record]
                catalog[code] = CatalogEntry(item_name=record.item_name, unit=record.unit)
            else:
                bucket.append(record)
        if record.province:
            provinces.add(record.province)
        if record.branch_id:
            branches.add(record.branch_id)

    if should_cancel is not None and should_cancel():
        raise IndexBuildCancelled(f"Index build cancelled after {len(records)} records")

    return InventoryIndex(
        records=records,
        by_code={code: tuple(bucket) for code, bucket in by_code.items()},
        catalog=catalog,
        provinces=tuple(sorted(provinces)),
        branches=sort_branch_ids(branches),
    )


class IndexPublisher:
    """Holds the active dataset snapshot and publishes new ones atomically.

    Every call to `build_and_publish` takes a generation ticket. A build whose
    ticket is no longer the latest stops at its next cancellation check and
    is never published, so readers only ever see complete snapshots from the
    most recent request. Snapshots are immutable, so a reader holding an
    older one keeps a consistent view after it is replaced.
    """

    def __init__(self, *, check_interval: int | None = None) -> None:
        self._lock = threading.Lock()
        self._generation = 0
        self._active: ActiveInventory | None = None
        self._check_interval = check_interval

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def _is_superseded(self, ticket: int) -> bool:
        return ticket != self._generation

    def build_and_publish(self, dataset_id: str, dataset: Iterable[CanonicalRecord]) -> ActiveInventory | None:
        """Build an index for `dataset` and make it active unless superseded.

        Returns the published snapshot, or None when a newer request (or a
        `clear`) arrived before this build finished.
        """

        ticket = self._next_generation()
        logger.debug(f"Index build {ticket} started for dataset {dataset_id}")
        try:
            index = build_index(
                dataset,
                should_cancel=lambda: self._is_superseded(ticket),
                check_interval=self._check_interval,
            )
        except IndexBuildCancelled:
            logger.debug(f"Index build {ticket} for dataset {dataset_id} superseded")
            return None

        with self._lock:
            if self._is_superseded(ticket):
                logger.debug(f"Index build {ticket} for dataset {dataset_id} finished after being superseded")
                return None
            published = ActiveInventory(
                dataset_id=dataset_id,
                dataset=index.records,
                index=index,
                generation=ticket,
            )
            self._active = published
        logger.debug(f"Index build {ticket} published ({index.record_count} records)")
        return published

    def snapshot(self) -> ActiveInventory | None:
        """Return the currently published snapshot, if any."""

        with self._lock:
            return self._active

    def clear(self) -> None:
        """Drop the active snapshot and invalidate builds still running."""

        with self._lock:
            self._generation += 1
            self._active = None
