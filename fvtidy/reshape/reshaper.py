from __future__ import annotations

import logging
import numbers
from collections.abc import Sequence
from typing import Any

import pandas as pd

from ..errors import CellValueError, ShapeError
from ..models.column_label import ColumnLabel
from ..models.config_models import HeaderSpec, TableSchema
from ..models.raw_block import RawBlock
from ..models.tidy_table import TidyTable
from .fill import fill_frame
from .headers import clean_text, labels_from_names, resolve_headers
from .normalizer import is_blank, is_suppressed, normalize

"""Table reshaper: RawBlock + shape description -> long-format TidyTable.

Steps:
1. Resolve column labels for the non-group columns from the header rows.
2. Load the data rows into a DataFrame and forward-fill the leading group columns.
3. Normalize every non-group cell to float / Missing.
4. ``melt(id_vars=group_columns)``: one row per (data row, value column) carrying the
   group values and the column label's dimension parts as keys, then freeze the
   result with ``TidyTable.from_frame``.

Row order is (data row, then column) as read; the melted frame is put back into that
order with a stable sort on the row and column positions. The whole table is
built before anything is returned, so any error leaves no partial table behind.
"""

logger = logging.getLogger(__name__)

# melt 用の作業列
_ROW = "__row__"
_LABEL = "__label__"

__all__ = [
    "reshape",
    "reshape_schema",
]


def _is_key_value(raw: Any) -> bool:
    # キー列は文字列 or 数値 (年度など) のみ許容
    return isinstance(raw, (str, numbers.Real)) and not isinstance(raw, bool)


def _key_texts(column: pd.Series, block: RawBlock, col: int) -> pd.Series:
    bad = ~column.map(_is_key_value).astype(bool)
    if bad.any():
        row = bad.idxmax()
        raw = column.loc[row]
        raise CellValueError(
            f"key cell holds unsupported {type(raw).__name__} value {raw!r}",
            cell=block.cell_ref(row, col),
        )
    return column.map(lambda v: clean_text(v) or "")


def _matches_exclude(label: ColumnLabel, exclude: set[str]) -> bool:
    if not exclude:
        return False
    return label.key in exclude or any(p in exclude for p in label.parts)


def reshape(
    raw_block: RawBlock,
    header_spec: HeaderSpec,
    group_columns: Sequence[str],
    value_name: str = "value",
    *,
    column_names: Sequence[str] | None = None,
    exclude: Sequence[str] = (),
    name: str | None = None,
) -> TidyTable:
    """Reshape one raw block into a TidyTable.

    Args:
        raw_block: rectangular cells of the declared range (header rows first)
        header_spec: header row count and the dimensions the header rows encode
        group_columns: names for the leading columns holding row group labels
        value_name: name of the value column in the result
        column_names: explicit labels for the value columns; count must match the
            resolved columns. Required when ``header_spec.rows == 0``.
        exclude: labels (composite key or any dimension part, case-insensitive)
            whose columns are dropped before melting, e.g. ``["Total"]``
        name: table name, defaults to the range address

    Raises:
        ShapeError: header/dimension mismatch, fill invariant violated, column
            count mismatch or a repeated key tuple
        CellValueError: a group cell that is neither text nor a number
    """
    table_name = name or raw_block.range_address
    n_rows, n_cols = raw_block.shape
    n_groups = len(group_columns)
    sep = header_spec.separator
    dims = header_spec.dimension_count

    if n_groups > n_cols:
        raise ShapeError(
            f"table '{table_name}' declares more group columns than the range has",
            expected=f"<= {n_cols} group columns",
            observed=n_groups,
        )
    if n_groups == n_cols:
        raise ShapeError(f"table '{table_name}' range has no value columns after the group columns")
    if header_spec.rows > n_rows:
        raise ShapeError(
            f"table '{table_name}' range is shorter than its header",
            expected=f">= {header_spec.rows} rows",
            observed=f"{n_rows} rows",
        )

    if not raw_block.has_header and header_spec.rows:
        raise ShapeError(
            f"table '{table_name}' was read without a header but declares header rows",
            expected="0 header rows",
            observed=f"{header_spec.rows} header rows",
        )

    head, body = raw_block.split(header_spec.rows)

    # 1. headers
    if header_spec.rows == 0:
        if column_names is None:
            raise ShapeError(f"table '{table_name}' has no header rows and no column_names")
        labels = labels_from_names(column_names, dims, separator=sep, pattern=header_spec.pattern)
    else:
        header_cells = [row[n_groups:] for row in head.cells]
        labels = resolve_headers(header_cells, dims, separator=sep, pattern=header_spec.pattern)
        if column_names is not None:
            if len(column_names) != len(labels):
                raise ShapeError(
                    f"table '{table_name}' column_names count does not match resolved columns",
                    expected=len(column_names),
                    observed=len(labels),
                )
            labels = labels_from_names(column_names, dims, separator=sep, pattern=header_spec.pattern)
    if len(labels) != n_cols - n_groups:
        raise ShapeError(
            f"table '{table_name}' column label count does not match value columns",
            expected=n_cols - n_groups,
            observed=len(labels),
        )

    excluded = {e.strip().lower().replace(" ", sep) for e in exclude}
    kept = [(j, label) for j, label in enumerate(labels) if not _matches_exclude(label, excluded)]
    if excluded:
        logger.debug("table=%s excluded_columns=%d", table_name, len(labels) - len(kept))

    # 2. group fill (全セル空の行は除外、index は body 内の行オフセットのまま)
    frame = pd.DataFrame(list(body.cells), columns=range(n_cols), dtype=object)
    frame = frame[~frame.map(is_blank).all(axis=1)]
    groups = fill_frame(frame.iloc[:, :n_groups].set_axis(list(group_columns), axis=1), group_columns)
    for c, col in enumerate(group_columns):
        groups[col] = _key_texts(groups[col], body, c)

    # 3. normalize
    values = frame.iloc[:, [n_groups + j for j, _ in kept]].set_axis(range(len(kept)), axis=1)
    suppressed = int(values.map(is_suppressed).to_numpy().sum())
    values = values.map(normalize)
    if suppressed:
        logger.debug("table=%s suppressed_cells=%d (reported at ceiling)", table_name, suppressed)

    # 4. melt: (data row, column) order
    key_columns = tuple(group_columns) + header_spec.dimensions
    clash = [c for c in dict.fromkeys(key_columns) if key_columns.count(c) > 1 or c == value_name]
    if clash:
        raise ShapeError(
            f"table '{table_name}' reuses column names {clash} across group columns, dimensions and value",
        )
    if frame.empty or not kept:
        long = pd.DataFrame(columns=[*key_columns, value_name])
    else:
        wide = pd.concat([groups, values], axis=1)
        wide.insert(0, _ROW, range(len(wide)))
        long = wide.melt(id_vars=[_ROW, *group_columns], var_name=_LABEL, value_name=value_name)
        long = long.sort_values([_ROW, _LABEL], kind="stable")
        titles = [label.titles for _, label in kept]
        for d, dim in enumerate(header_spec.dimensions):
            long[dim] = long[_LABEL].map(lambda k, d=d: titles[k][d])

    table = TidyTable.from_frame(table_name, long, key_columns, (value_name,))
    logger.debug(
        "table=%s data_rows=%d melted_columns=%d tidy_rows=%d",
        table_name,
        len(frame),
        len(kept),
        len(table),
    )
    return table


def reshape_schema(raw_block: RawBlock, schema: TableSchema) -> TidyTable:
    """Reshape a raw block according to a declared TableSchema."""
    return reshape(
        raw_block,
        schema.header,
        schema.group_columns,
        schema.value_name,
        column_names=schema.column_names,
        exclude=schema.exclude,
        name=schema.name,
    )
