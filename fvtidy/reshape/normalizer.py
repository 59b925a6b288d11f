from __future__ import annotations

import math
import numbers
import re
from typing import Any

"""Cell normalizer: raw spreadsheet cell -> float or Missing (None).

Rules:
- Numbers pass through as float (NaN -> None) and keep their sign: -5 -> -5.0.
- Text keeps only ASCII digits and '.'; thousands separators, currency symbols,
  footnote markers and inequality signs all drop out. So does a minus sign, so the
  text "-5" becomes 5.0 while the number -5 stays -5.0.
- Nothing left -> None. Leftover text that still is not a number ("1.2.3") -> None.
- Disclosure-control markers ("≤ 3", "<=3") resolve to their ceiling, 3, never to
  a midpoint or interval.
"""

__all__ = [
    "normalize",
    "is_suppressed",
    "is_blank",
]

_NON_NUMERIC = re.compile(r"[^0-9.]")
_SUPPRESSED = re.compile(r"^\s*(≤|<=|<)\s*[0-9]")


def is_blank(raw: Any) -> bool:
    """True for None, NaN and whitespace-only text."""
    if raw is None:
        return True
    if isinstance(raw, float) and math.isnan(raw):
        return True
    if isinstance(raw, str) and raw.strip() == "":
        return True
    return False


def is_suppressed(raw: Any) -> bool:
    """True when the cell is a disclosure-control marker such as ``≤ 3``."""
    return isinstance(raw, str) and _SUPPRESSED.match(raw) is not None


def normalize(raw: Any) -> float | None:
    """Normalize one raw cell value to ``float`` or ``None`` (Missing).

    >>> normalize("1,234")
    1234.0
    >>> normalize("≤ 3")
    3.0
    >>> normalize("—") is None
    True
    """
    if is_blank(raw) or isinstance(raw, bool):
        return None
    if isinstance(raw, numbers.Real):
        value = float(raw)
        return None if math.isnan(value) else value
    stripped = _NON_NUMERIC.sub("", str(raw))
    if not stripped:
        return None
    try:
        return float(stripped)
    except ValueError:
        # "1.2.3" / "." など
        return None
