from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import pandas as pd

from ..errors import ShapeError
from .normalizer import is_blank

"""Hierarchical fill for grouping columns left blank by merged cells.

A "Police Region" label shown once above many "Local Government Area" rows becomes
an explicit value on every row.
"""

__all__ = [
    "fill",
    "fill_frame",
]


def fill_frame(frame: pd.DataFrame, group_columns: Sequence[str]) -> pd.DataFrame:
    """Return a copy of ``frame`` with blank group cells forward-filled (``ffill()``).

    Blank means None, NaN or whitespace-only text. Non-blank cells are never changed.
    The first row must carry a value in every group column; otherwise there is
    nothing to propagate and ShapeError is raised.
    """
    filled = frame.copy()
    for col in group_columns:
        column = filled[col].astype(object)
        column = column.where(~column.map(is_blank), None)
        if len(column) and pd.isna(column.iloc[0]):
            raise ShapeError(
                f"group column '{col}' is blank on the first data row with no value above it",
                expected="non-blank first row",
                observed="blank",
            )
        filled[col] = column.ffill()
    return filled


def fill(rows: Sequence[Mapping[str, Any]], group_columns: Sequence[str]) -> list[dict[str, Any]]:
    """Row-mapping form of :func:`fill_frame`; returns new dicts, inputs are untouched."""
    if not rows:
        return []
    frame = pd.DataFrame.from_records([dict(r) for r in rows]).astype(object)
    filled = fill_frame(frame, group_columns)
    return filled.to_dict("records")
