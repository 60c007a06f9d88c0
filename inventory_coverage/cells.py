"""Cell-level text and number helpers shared by models and normalization."""

from __future__ import annotations

import math
import re
from decimal import Decimal
from typing import Any

_NON_NUMERIC_RE = re.compile(r"[^0-9.\-]")
_FLOAT_PREFIX_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def cell_text(value: Any) -> str:
    """Render a cell as trimmed text; `None` becomes `""`.

    Floats are written in plain decimal notation, since an exponent such as
    `5e-05` would lose its meaning once non-numeric characters are stripped.
    """

    if value is None:
        return ""
    if isinstance(value, float) and math.isfinite(value):
        text = repr(value)
        if "e" in text or "E" in text:
            text = format(Decimal(text), "f")
        return text
    return str(value).strip()


def normalize_code(value: Any) -> str:
    """Return the comparison form of an item code: trimmed and uppercased."""

    return cell_text(value).upper()


def parse_quantity(value: Any) -> float:
    """Parse a quantity cell leniently; anything unparseable becomes `0.0`.

    Every character other than digits, `.` and `-` is removed first, so
    thousands separators and unit suffixes are ignored. The longest leading
    number of what remains is used (`"1.5.2"` reads as `1.5`).
    """

    cleaned = _NON_NUMERIC_RE.sub("", cell_text(value))
    match = _FLOAT_PREFIX_RE.match(cleaned)
    if match is None:
        return 0.0
    parsed = float(match.group())
    if not math.isfinite(parsed):
        return 0.0
    return parsed
