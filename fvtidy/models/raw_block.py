from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from openpyxl.utils import get_column_letter

"""RawBlock model: a rectangular grid of raw cell values read from one range.

Empty cells are ``None`` (never 0). Offsets are relative to the range's top-left
cell; ``cell_ref`` converts them back to absolute sheet coordinates for error
messages.
"""

__all__ = [
    "RawBlock",
]


@dataclass(frozen=True)
class RawBlock:
    sheet: str
    range_address: str
    cells: tuple[tuple[Any, ...], ...]
    origin_row: int = 1  # 1-based sheet row of cells[0]
    origin_col: int = 1  # 1-based sheet column of cells[r][0]
    has_header: bool = True

    def __post_init__(self) -> None:
        widths = {len(r) for r in self.cells}
        if len(widths) > 1:
            raise ValueError(
                f"RawBlock must be rectangular, got row widths {sorted(widths)} for {self.range_address}"
            )

    @property
    def shape(self) -> tuple[int, int]:
        if not self.cells:
            return (0, 0)
        return (len(self.cells), len(self.cells[0]))

    def cell_ref(self, row: int, col: int) -> str:
        """Absolute reference like ``Table 2!C17`` for an offset within the block."""
        return f"{self.sheet}!{get_column_letter(self.origin_col + col)}{self.origin_row + row}"

    def split(self, header_rows: int) -> tuple[RawBlock, RawBlock]:
        """Split into (header block, data block) after ``header_rows`` rows."""
        head = RawBlock(
            sheet=self.sheet,
            range_address=self.range_address,
            cells=self.cells[:header_rows],
            origin_row=self.origin_row,
            origin_col=self.origin_col,
            has_header=self.has_header,
        )
        body = RawBlock(
            sheet=self.sheet,
            range_address=self.range_address,
            cells=self.cells[header_rows:],
            origin_row=self.origin_row + header_rows,
            origin_col=self.origin_col,
            has_header=False,
        )
        return head, body
