"""File-system store for normalized datasets and their metadata.

Layout:
    <base_path>/
    ├── files/
    │   └── file_1729300000000.json   canonical records
    └── meta/
        └── file_1729300000000.json   name, row count, size, upload time

Records are written before metadata, and each file is replaced atomically,
so a dataset only becomes listable once its records are complete.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Iterable
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from . import settings
from .errors import DatasetNotFoundError
from .models import CanonicalRecord, Dataset, DatasetMeta
from .normalize import CANONICAL_FIELDS

logger = logging.getLogger(__name__)


def _write_json_atomic(path: Path, payload: Any) -> None:
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)


def _meta_to_dict(meta: DatasetMeta) -> dict[str, Any]:
    return {
        "id": meta.dataset_id,
        "name": meta.name,
        "row_count": meta.row_count,
        "size_bytes": meta.size_bytes,
        "uploaded_at": meta.uploaded_at.isoformat(),
    }


def _meta_from_dict(payload: dict[str, Any]) -> DatasetMeta:
    return DatasetMeta(
        dataset_id=payload["id"],
        name=payload["name"],
        row_count=int(payload["row_count"]),
        size_bytes=int(payload["size_bytes"]),
        uploaded_at=datetime.fromisoformat(payload["uploaded_at"]),
    )


def _record_from_dict(payload: dict[str, Any]) -> CanonicalRecord:
    return CanonicalRecord(**{name: str(payload.get(name, "")) for name in CANONICAL_FIELDS})


class DatasetStore:
    """Persists named datasets so they can be reloaded and re-indexed later.

    Example Usage:
        ```python
        store = DatasetStore("inventory_store")
        meta = store.save("stock_2024_10.xlsx", dataset, size_bytes=123_456)
        restored = store.load(meta.dataset_id)
        index = build_index(restored)
        ```
    """

    def __init__(self, base_path: Path | str | None = None):
        self.base_path = Path(base_path) if base_path is not None else settings.STORE_DIR
        self._files_dir = self.base_path / "files"
        self._meta_dir = self.base_path / "meta"
        self._files_dir.mkdir(parents=True, exist_ok=True)
        self._meta_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Initialized DatasetStore at {self.base_path}")

    def _new_id(self) -> str:
        base_id = f"file_{int(time.time() * 1000)}"
        dataset_id = base_id
        suffix = 1
        while (self._meta_dir / f"{dataset_id}.json").exists() or (self._files_dir / f"{dataset_id}.json").exists():
            dataset_id = f"{base_id}_{suffix}"
            suffix += 1
        return dataset_id

    def _paths(self, dataset_id: str) -> tuple[Path, Path]:
        if not dataset_id or Path(dataset_id).name != dataset_id:
            raise DatasetNotFoundError(f"Invalid dataset id: {dataset_id!r}")
        return self._files_dir / f"{dataset_id}.json", self._meta_dir / f"{dataset_id}.json"

    def save(self, name: str, dataset: Iterable[CanonicalRecord], *, size_bytes: int = 0) -> DatasetMeta:
        """Persist a dataset and return its newly assigned metadata."""

        records = tuple(dataset)
        dataset_id = self._new_id()
        files_path, meta_path = self._paths(dataset_id)
        meta = DatasetMeta(
            dataset_id=dataset_id,
            name=name,
            row_count=len(records),
            size_bytes=size_bytes,
            uploaded_at=datetime.now(timezone.utc),
        )

        _write_json_atomic(files_path, {"id": dataset_id, "records": [asdict(record) for record in records]})
        _write_json_atomic(meta_path, _meta_to_dict(meta))
        logger.info(f"Saved dataset {dataset_id} ({meta.row_count} records) as {name!r}")
        return meta

    def load(self, dataset_id: str) -> Dataset:
        """Load the canonical records of a stored dataset."""

        files_path, _ = self._paths(dataset_id)
        if not files_path.exists():
            raise DatasetNotFoundError(f"Dataset not found: {dataset_id}")
        payload = json.loads(files_path.read_text(encoding="utf-8"))
        records = tuple(_record_from_dict(item) for item in payload.get("records", []))
        logger.info(f"Loaded dataset {dataset_id} ({len(records)} records)")
        return records

    def get_meta(self, dataset_id: str) -> DatasetMeta:
        _, meta_path = self._paths(dataset_id)
        if not meta_path.exists():
            raise DatasetNotFoundError(f"Dataset not found: {dataset_id}")
        return _meta_from_dict(json.loads(meta_path.read_text(encoding="utf-8")))

    def list_meta(self) -> list[DatasetMeta]:
        """Return metadata of every stored dataset, newest upload first."""

        metas = [
            _meta_from_dict(json.loads(path.read_text(encoding="utf-8")))
            for path in self._meta_dir.glob("*.json")
        ]
        return sorted(metas, key=lambda meta: (meta.uploaded_at, meta.dataset_id), reverse=True)

    def delete(self, dataset_id: str) -> None:
        """Remove a dataset's records and metadata."""

        files_path, meta_path = self._paths(dataset_id)
        if not files_path.exists() and not meta_path.exists():
            raise DatasetNotFoundError(f"Dataset not found: {dataset_id}")
        # Metadata first so a half-deleted dataset is no longer listed.
        meta_path.unlink(missing_ok=True)
        files_path.unlink(missing_ok=True)
        logger.info(f"Deleted dataset {dataset_id}")
