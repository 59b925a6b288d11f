from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .tidy_table import TidyTable

"""Build result models: per-table stats and the aggregated deck build result."""

__all__ = [
    "TableStat",
    "BuildResult",
]


@dataclass(frozen=True)
class TableStat:
    """Per-table build statistics."""
    table: str
    status: str  # success / failed
    rows: int  # tidy rows produced
    elapsed_seconds: float
    derived: bool = False
    error: str | None = None


@dataclass(frozen=True)
class BuildResult:
    """Aggregated results of one deck build."""
    tables: dict[str, TidyTable]  # successfully built, declaration order
    success_tables: int
    failed_tables: int
    derived_tables: int  # successfully built derived tables (included in success_tables)
    total_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    table_stats: list[TableStat] = field(default_factory=list)
