from __future__ import annotations

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

import pandas as pd

from ..errors import ShapeError
from ..models.config_models import AGGREGATE_OPS
from ..models.tidy_table import TidyTable

"""Joins and grouped aggregates over TidyTables.

Both always build a new table with fresh rows; inputs are left untouched so the same
reshaped table can feed several charts.

Missing values (None) are absent, not zero: they are skipped by sum/mean/count and a
group with nothing but Missing sums to Missing.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "join",
    "aggregate",
    "round_half_up",
    "DEFAULT_MEAN_PRECISION",
]

DEFAULT_MEAN_PRECISION = 1

# 作業列
_MERGE = "__merge__"
_ALL = "__all__"


def round_half_up(value: float, precision: int) -> float:
    """Round like a spreadsheet does (0.05 -> 0.1), not banker's rounding."""
    quantum = Decimal(1).scaleb(-precision)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def join(left: TidyTable, right: TidyTable, on: Sequence[str], *, name: str | None = None) -> TidyTable:
    """Left join ``right`` onto ``left`` using key columns ``on``.

    Every left row is kept, in order. Its matching right row contributes the right
    table's value columns; without a match those values are Missing. Right value
    columns whose name clashes with a left column get a ``_right`` suffix.

    Raises:
        ShapeError: ``on`` is empty or not key columns of both tables, or the right
            table has several rows for one ``on`` tuple.
    """
    if not on:
        raise ShapeError("join requires at least one key column", expected=">= 1 key", observed=0)
    for key in on:
        left.key_index(key)
        right.key_index(key)

    right_columns = tuple(
        f"{c}_right" if c in left.columns else c for c in right.value_columns
    )
    rf = right.to_frame()[[*on, *right.value_columns]]
    rf.columns = [*on, *right_columns]
    try:
        merged = left.to_frame().merge(
            rf, on=list(on), how="left", validate="many_to_one", indicator=_MERGE
        )
    except pd.errors.MergeError:
        raise ShapeError(
            f"right table '{right.name}' has several rows for one join key {list(on)}",
            expected="unique join keys",
            observed="duplicate",
        ) from None
    unmatched = int((merged[_MERGE] == "left_only").sum())

    table = TidyTable.from_frame(
        name or f"{left.name}+{right.name}",
        merged,
        left.key_columns,
        left.value_columns + right_columns,
    )
    logger.debug(
        "join left=%s right=%s on=%s rows=%d unmatched=%d",
        left.name,
        right.name,
        list(on),
        len(table),
        unmatched,
    )
    return table


def aggregate(
    table: TidyTable,
    group_keys: Sequence[str],
    op: str,
    *,
    value_column: str | None = None,
    precision: int = DEFAULT_MEAN_PRECISION,
    name: str | None = None,
) -> TidyTable:
    """Group ``table`` by ``group_keys`` and reduce one value column with ``op``.

    ``op`` is ``sum``, ``mean`` or ``count``. Groups keep first-seen order
    (``groupby(sort=False)``). The result value column keeps the source name for
    sum/mean and is called ``count`` for count. Means are rounded half-up to
    ``precision`` decimals. Sum uses ``min_count=1`` so an all-Missing group stays
    Missing instead of becoming 0.
    """
    if op not in AGGREGATE_OPS:
        raise ValueError(f"unsupported aggregate op '{op}' (expected one of {AGGREGATE_OPS})")
    column = value_column or table.value_column
    table.value_index(column)
    for key in group_keys:
        table.key_index(key)
    result_column = "count" if op == "count" else column
    if result_column in group_keys:
        raise ShapeError(f"aggregate result column '{result_column}' is also a group key")

    frame = table.to_frame()
    # キーなしは全行で 1 グループ
    by = list(group_keys) or [_ALL]
    if not group_keys:
        frame[_ALL] = ""
    grouped = frame.groupby(by, sort=False)[column]
    if op == "sum":
        result = grouped.sum(min_count=1)
    else:
        result = grouped.agg(op)
    if op == "mean":
        result = result.map(lambda x: x if pd.isna(x) else round_half_up(float(x), precision))

    return TidyTable.from_frame(
        name or f"{table.name}:{op}",
        result.rename(result_column).reset_index(),
        tuple(group_keys),
        (result_column,),
    )
