"""Exception types raised by the inventory coverage package."""

from __future__ import annotations


class InventoryError(Exception):
    """Base class for package errors."""


class IngestionError(InventoryError, ValueError):
    """A source file could not be decoded into records."""


class IndexBuildCancelled(InventoryError):
    """An index build was superseded before it finished."""


class DatasetNotFoundError(InventoryError, KeyError):
    """No stored dataset exists for the requested id."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
