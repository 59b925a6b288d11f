from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

from ..errors import ShapeError

"""TidyRow / TidyTable: the long-format tables handed to the chart layer.

A TidyTable is built once and never mutated. Joins and aggregates construct new
tables with fresh rows. Missing values are ``None`` (``NaN`` only once converted to
a DataFrame).
"""

__all__ = [
    "TidyRow",
    "TidyTable",
]


@dataclass(frozen=True)
class TidyRow:
    """One observation: key values plus numeric-or-missing values."""
    keys: tuple[str, ...]
    values: tuple[float | None, ...]


@dataclass(frozen=True)
class TidyTable:
    name: str
    key_columns: tuple[str, ...]
    value_columns: tuple[str, ...]
    rows: tuple[TidyRow, ...] = ()

    def __post_init__(self) -> None:
        overlap = set(self.key_columns) & set(self.value_columns)
        if overlap:
            raise ShapeError(f"table '{self.name}' uses {sorted(overlap)} as both key and value column")
        seen: set[tuple[str, ...]] = set()
        for i, row in enumerate(self.rows):
            if len(row.keys) != len(self.key_columns) or len(row.values) != len(self.value_columns):
                raise ShapeError(
                    f"table '{self.name}' row {i} width mismatch",
                    expected=(len(self.key_columns), len(self.value_columns)),
                    observed=(len(row.keys), len(row.values)),
                )
            if row.keys in seen:
                raise ShapeError(f"table '{self.name}' has duplicate key tuple {row.keys}")
            seen.add(row.keys)

    @classmethod
    def from_frame(
        cls,
        name: str,
        frame: pd.DataFrame,
        key_columns: Sequence[str],
        value_columns: Sequence[str],
    ) -> TidyTable:
        """Freeze a DataFrame into a table; keys become text, NaN becomes ``None``."""
        n = len(key_columns)
        records = frame[[*key_columns, *value_columns]].itertuples(index=False, name=None)
        rows = tuple(
            TidyRow(
                keys=tuple(str(k) for k in r[:n]),
                values=tuple(None if pd.isna(v) else float(v) for v in r[n:]),
            )
            for r in records
        )
        return cls(name=name, key_columns=tuple(key_columns), value_columns=tuple(value_columns), rows=rows)

    @property
    def value_column(self) -> str:
        """The primary (first declared) value column."""
        return self.value_columns[0]

    @property
    def columns(self) -> tuple[str, ...]:
        return self.key_columns + self.value_columns

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[TidyRow]:
        return iter(self.rows)

    def key_index(self, column: str) -> int:
        try:
            return self.key_columns.index(column)
        except ValueError:
            raise ShapeError(
                f"table '{self.name}' has no key column '{column}'",
                expected=column,
                observed=list(self.key_columns),
            ) from None

    def value_index(self, column: str) -> int:
        try:
            return self.value_columns.index(column)
        except ValueError:
            raise ShapeError(
                f"table '{self.name}' has no value column '{column}'",
                expected=column,
                observed=list(self.value_columns),
            ) from None

    def column(self, name: str) -> list[Any]:
        if name in self.key_columns:
            i = self.key_index(name)
            return [r.keys[i] for r in self.rows]
        i = self.value_index(name)
        return [r.values[i] for r in self.rows]

    def records(self) -> list[dict[str, Any]]:
        """Rows as mappings (column name -> value) in table order."""
        return [
            dict(zip(self.key_columns, r.keys, strict=True)) | dict(zip(self.value_columns, r.values, strict=True))
            for r in self.rows
        ]

    def to_frame(self, levels: Mapping[str, Sequence[str]] | None = None) -> pd.DataFrame:
        """DataFrame view for plotting; ``levels`` fixes categorical orderings per key column."""
        df = pd.DataFrame.from_records(self.records(), columns=list(self.columns))
        for col in self.value_columns:
            df[col] = pd.to_numeric(df[col], errors="coerce").astype("float64")
        if levels:
            for col, order in levels.items():
                if col not in self.key_columns:
                    continue
                observed = [v for v in dict.fromkeys(df[col]) if v not in order]
                df[col] = pd.Categorical(df[col], categories=list(order) + observed, ordered=True)
        return df
