from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import pandas as pd
import pandas._libs.parsers as parsers
from openpyxl.utils.cell import range_boundaries

from ..errors import SourceError
from ..models.raw_block import RawBlock

"""Workbook range reader.

Reads a ``TopLeft:BottomRight`` range (e.g. ``B15:I93``) from a named sheet into a
RawBlock. The sheet is parsed raw (``header=None``) so header rows stay ordinary
cells for the header resolver; empty cells come back as ``None``.

A range that runs past the sheet's used area is padded with empty cells. A range
that *starts* outside it, a missing sheet, a missing workbook or a malformed address
is a SourceError.
"""

__all__ = [
    "parse_range",
    "read_range",
    "load_sheet",
    "clear_cache",
]


def parse_range(range_address: str, sheet_name: str | None = None) -> tuple[int, int, int, int]:
    """Return 1-based ``(min_col, min_row, max_col, max_row)`` for an A1-style range."""
    try:
        bounds = range_boundaries(range_address.replace("$", "").strip())
    except (ValueError, TypeError) as e:
        raise SourceError(f"invalid range address: {e}", sheet=sheet_name, range_address=range_address) from e
    if any(b is None for b in bounds):
        # "B:I" / "15:93" のような行・列全体指定は不可
        raise SourceError(
            "range address must name both corners (e.g. 'B15:I93')",
            sheet=sheet_name,
            range_address=range_address,
        )
    return bounds  # type: ignore[return-value]


def _na_options(keep_na_strings: tuple[str, ...] | None) -> dict[str, object]:
    # pandas 既定の NA 文字列から keep_na_strings を除外
    if not keep_na_strings:
        return {"keep_default_na": True, "na_values": None}
    custom_na = parsers.STR_NA_VALUES - set(keep_na_strings)
    return {"keep_default_na": False, "na_values": list(custom_na)}


@lru_cache(maxsize=32)
def _load_sheet_cached(
    path: str, mtime: float, sheet_name: str, keep_na_strings: tuple[str, ...] | None
) -> pd.DataFrame:
    try:
        xls = pd.ExcelFile(path)
    except Exception as e:  # openpyxl / zipfile raise assorted types for unreadable files
        raise SourceError(f"cannot open workbook {Path(path).name}: {e}", sheet=sheet_name) from e
    with xls:
        if sheet_name not in [str(s) for s in xls.sheet_names]:
            raise SourceError(
                f"sheet not found in {Path(path).name} (available: {xls.sheet_names})",
                sheet=sheet_name,
            )
        return xls.parse(sheet_name, header=None, **_na_options(keep_na_strings))


def load_sheet(
    workbook_path: Path | str, sheet_name: str, keep_na_strings: tuple[str, ...] | None = None
) -> pd.DataFrame:
    """Parse a whole sheet without headers. Parsed sheets are cached per file mtime.

    The returned frame is shared by every range read from the same sheet; do not
    modify it in place.
    """
    path = Path(workbook_path)
    if not path.exists():
        raise SourceError(f"workbook not found: {path}", sheet=sheet_name)
    return _load_sheet_cached(str(path.resolve()), path.stat().st_mtime, sheet_name, keep_na_strings)


def clear_cache() -> None:
    _load_sheet_cached.cache_clear()


def read_range(
    workbook_path: Path | str,
    sheet_name: str,
    range_address: str,
    has_header: bool = True,
    keep_na_strings: tuple[str, ...] | None = None,
) -> RawBlock:
    """Read one rectangular range into a RawBlock.

    Parameters
    ----------
    workbook_path: Excel ファイルパス
    sheet_name: sheet to read
    range_address: ``TopLeft:BottomRight`` address, ``$`` anchors allowed
    has_header: False when the first row of the range is already data
    keep_na_strings: strings pandas would turn into NaN that must stay text (e.g. 'NA')
    """
    min_col, min_row, max_col, max_row = parse_range(range_address, sheet_name)
    try:
        df = load_sheet(workbook_path, sheet_name, keep_na_strings)
    except SourceError as e:
        raise SourceError(e.reason, sheet=sheet_name, range_address=range_address) from e

    n_rows, n_cols = df.shape
    if min_row > n_rows or min_col > n_cols:
        raise SourceError(
            f"range starts outside the used area of the sheet ({n_rows} rows x {n_cols} columns)",
            sheet=sheet_name,
            range_address=range_address,
        )
    block = df.iloc[min_row - 1 : max_row, min_col - 1 : max_col]
    block = block.reindex(index=range(min_row - 1, max_row), columns=range(min_col - 1, max_col))
    block = block.astype(object).where(block.notna(), None)
    cells = tuple(tuple(r) for r in block.to_numpy().tolist())
    return RawBlock(
        sheet=sheet_name,
        range_address=range_address,
        cells=cells,
        origin_row=min_row,
        origin_col=min_col,
        has_header=has_header,
    )
