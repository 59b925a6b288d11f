"""fvtidy: spreadsheet ranges -> tidy tables for the family-violence statistics deck.

Typical use::

    from fvtidy import read_range, reshape_schema
    table = reshape_schema(read_range(path, "Table 02", "B15:I93"), schema)
"""

from .errors import CellValueError, ShapeError, SourceError, TidyError
from .excel.reader import read_range
from .models import HeaderSpec, TableSchema, TidyRow, TidyTable
from .reshape import aggregate, fill, join, normalize, reshape, reshape_schema, resolve_headers, split_label

__version__ = "0.1.0"

__all__ = [
    "CellValueError",
    "HeaderSpec",
    "ShapeError",
    "SourceError",
    "TableSchema",
    "TidyError",
    "TidyRow",
    "TidyTable",
    "aggregate",
    "fill",
    "join",
    "normalize",
    "read_range",
    "reshape",
    "reshape_schema",
    "resolve_headers",
    "split_label",
]
