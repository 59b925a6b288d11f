from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

from ..models.tidy_table import TidyTable

"""CSV export of built tables, one ``<name>.csv`` per table (plot id)."""

logger = logging.getLogger(__name__)

__all__ = [
    "export_tables",
    "export_path",
]


def export_path(out_dir: Path, table_name: str) -> Path:
    return out_dir / f"{table_name}.csv"


def export_tables(
    tables: Mapping[str, TidyTable],
    out_dir: Path,
    levels: Mapping[str, Sequence[str]] | None = None,
) -> list[Path]:
    """Write each table to ``out_dir/<name>.csv``; Missing values become empty cells."""
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for name, table in tables.items():
        path = export_path(out_dir, name)
        table.to_frame(levels).to_csv(path, index=False)
        logger.debug("export table=%s rows=%d path=%s", name, len(table), path)
        written.append(path)
    return written
