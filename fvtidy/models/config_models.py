from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the deck table builder.

These are the declarative schema objects: one TableSchema per spreadsheet range
feeding a chart, plus DerivedTableConfig entries for joins/aggregates computed from
already-built tables. Per-slide code only declares these; all reshaping goes through
the one general reshaper.
"""

__all__ = [
    "HeaderSpec",
    "TableSchema",
    "DerivedTableConfig",
    "DeckConfig",
    "AGGREGATE_OPS",
]

AGGREGATE_OPS = ("sum", "mean", "count")


@dataclass(frozen=True)
class HeaderSpec:
    """How many header rows precede the data and which dimension each encodes.

    The dimension rows are the bottom ``len(dimensions)`` rows of the header block;
    anything above them is banner/title text and is ignored.
    """
    rows: int = 1  # header row count (0 = no header, names come from column_names)
    dimensions: tuple[str, ...] = ("category",)  # e.g. ("financial_year", "category")
    separator: str = "_"
    pattern: str | None = None  # regex, 1 group per dimension, for splitting composite keys

    @property
    def dimension_count(self) -> int:
        return len(self.dimensions)


@dataclass(frozen=True)
class TableSchema:
    """Extraction schema for a single spreadsheet range."""
    name: str  # plot identifier, also the export file stem
    workbook: str  # file name relative to DeckConfig.workbook_directory
    sheet: str
    range: str  # "B15:I93"
    header: HeaderSpec = field(default_factory=HeaderSpec)
    group_columns: tuple[str, ...] = ()  # leading columns, forward-filled
    value_name: str = "value"
    has_header: bool = True
    column_names: tuple[str, ...] | None = None  # explicit labels (count must match)
    exclude: tuple[str, ...] = ()  # labels dropped before melting (e.g. "Total")

    @property
    def key_columns(self) -> tuple[str, ...]:
        return self.group_columns + self.header.dimensions


@dataclass(frozen=True)
class DerivedTableConfig:
    """A table computed from other tables: ``join`` or ``aggregate``."""
    name: str
    kind: str  # "join" | "aggregate"
    sources: tuple[str, ...]  # join: (left, right) / aggregate: (source,)
    keys: tuple[str, ...]  # join: on / aggregate: by
    op: str | None = None  # aggregate only
    value_column: str | None = None  # aggregate only, defaults to the source's primary value


@dataclass(frozen=True)
class DeckConfig:
    """Root configuration for a deck build."""
    workbook_directory: str
    tables: tuple[TableSchema, ...]
    derived: tuple[DerivedTableConfig, ...] = ()
    levels: dict[str, tuple[str, ...]] = field(default_factory=dict)  # 表示順 (chart 側の並び)
    mean_precision: int = 1
    output_directory: str = "./out"
    keep_na_strings: tuple[str, ...] = ()  # pandas NA 変換から除外する文字列
