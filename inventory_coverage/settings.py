"""
Central configuration for storage paths, build tuning and logging.

Values are read once at import time from the environment (a local `.env`
file is honoured through python-dotenv). Import the constants where needed;
there is no runtime logic here beyond parsing.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {value}")
    return value


STORE_DIR = Path(os.getenv("INVENTORY_STORE_DIR", ".inventory_store"))

# Records processed between two cancellation checks during an index build.
CANCEL_CHECK_INTERVAL = _int_from_env("INVENTORY_CANCEL_CHECK_INTERVAL", 5_000)

LOG_LEVEL = os.getenv("INVENTORY_LOG_LEVEL", "WARNING").upper()

EXCEL_SUFFIXES = frozenset({".xlsx", ".xlsm"})
CSV_SUFFIXES = frozenset({".csv"})
SUPPORTED_SUFFIXES = EXCEL_SUFFIXES | CSV_SUFFIXES
