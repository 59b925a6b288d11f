from __future__ import annotations

"""Error hierarchy for workbook extraction and reshaping.

Every failure is structural (declared schema vs actual sheet layout), so none of
these are retried. Reshaping is all-or-nothing per table: when one of these is
raised no partial TidyTable escapes.
"""

__all__ = [
    "TidyError",
    "SourceError",
    "ShapeError",
    "CellValueError",
]


class TidyError(Exception):
    """Base class for extraction/reshape failures."""


class SourceError(TidyError):
    """Workbook, sheet or range could not be read."""

    def __init__(self, message: str, *, sheet: str | None = None, range_address: str | None = None) -> None:
        self.reason = message
        self.sheet = sheet
        self.range_address = range_address
        if sheet is not None or range_address is not None:
            message = f"{message} (sheet='{sheet}' range='{range_address}')"
        super().__init__(message)


class ShapeError(TidyError):
    """Declared extraction schema does not match the spreadsheet layout."""

    def __init__(self, message: str, *, expected: object = None, observed: object = None) -> None:
        self.expected = expected
        self.observed = observed
        if expected is not None or observed is not None:
            message = f"{message}: expected {expected}, observed {observed}"
        super().__init__(message)


class CellValueError(TidyError):
    """A cell holds a value that cannot be used where it appears (e.g. a key column)."""

    def __init__(self, message: str, *, cell: str | None = None) -> None:
        self.cell = cell
        if cell is not None:
            message = f"{message} at {cell}"
        super().__init__(message)
