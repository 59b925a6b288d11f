from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..errors import CellValueError, ShapeError, SourceError, TidyError
from ..excel.reader import read_range
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.build_result import BuildResult, TableStat
from ..models.config_models import DeckConfig, DerivedTableConfig, TableSchema
from ..models.tidy_table import TidyTable
from ..reshape.joiner import aggregate, join
from ..reshape.reshaper import reshape_schema
from .progress import ProgressTracker

"""Deck build orchestration.

Builds every declared table (read range -> reshape), then every derived table
(join / aggregate) in declaration order. Each table is independent: a failure is
logged, recorded in the error log and the build moves on. Derived tables whose
sources failed are recorded as DEPENDENCY_ERROR without being attempted.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BuildError",
    "build_table",
    "build_derived",
    "build_deck",
]


class BuildError(Exception):
    """Fatal error that prevents the whole build (e.g. missing workbook directory)."""


def _error_type(e: Exception) -> str:
    if isinstance(e, SourceError):
        return "SOURCE_ERROR"
    if isinstance(e, ShapeError):
        return "SHAPE_ERROR"
    if isinstance(e, CellValueError):
        return "VALUE_ERROR"
    return "UNEXPECTED_ERROR"


def build_table(
    schema: TableSchema, workbook_directory: Path | str, keep_na_strings: tuple[str, ...] = ()
) -> TidyTable:
    """Read and reshape one declared range."""
    block = read_range(
        Path(workbook_directory) / schema.workbook,
        schema.sheet,
        schema.range,
        has_header=schema.has_header,
        keep_na_strings=keep_na_strings or None,
    )
    return reshape_schema(block, schema)


def build_derived(
    derived: DerivedTableConfig, tables: dict[str, TidyTable], mean_precision: int = 1
) -> TidyTable:
    """Compute a join/aggregate table from already-built tables."""
    if derived.kind == "join":
        left, right = (tables[s] for s in derived.sources)
        return join(left, right, derived.keys, name=derived.name)
    if derived.kind == "aggregate":
        return aggregate(
            tables[derived.sources[0]],
            derived.keys,
            derived.op or "sum",
            value_column=derived.value_column,
            precision=mean_precision,
            name=derived.name,
        )
    raise ValueError(f"unknown derived table kind: {derived.kind}")


def build_deck(config: DeckConfig, error_log: ErrorLogBuffer | None = None) -> BuildResult:
    """Build every table of the deck.

    Args:
        config: deck configuration
        error_log: buffer receiving one ErrorRecord per failed table (flushed here)

    Returns:
        BuildResult with the built tables and per-table stats

    Raises:
        BuildError: the workbook directory does not exist
    """
    start_time = datetime.now(UTC)
    directory = Path(config.workbook_directory)
    if not directory.is_dir():
        raise BuildError(f"workbook directory not found: {directory}")
    if error_log is None:
        error_log = ErrorLogBuffer()

    tables: dict[str, TidyTable] = {}
    stats: list[TableStat] = []

    def _failed(
        name: str, started: datetime, error_type: str, message: str, derived: bool, schema: TableSchema | None
    ) -> None:
        logger.error("table=%s %s: %s", name, error_type, message)
        error_log.append(
            ErrorRecord.create(
                table=name,
                workbook=schema.workbook if schema else "",
                sheet=schema.sheet if schema else "",
                range=schema.range if schema else "",
                error_type=error_type,
                message=message,
            )
        )
        stats.append(
            TableStat(
                table=name,
                status="failed",
                rows=0,
                elapsed_seconds=(datetime.now(UTC) - started).total_seconds(),
                derived=derived,
                error=message,
            )
        )

    def _succeeded(table: TidyTable, started: datetime, derived: bool) -> None:
        tables[table.name] = table
        stats.append(
            TableStat(
                table=table.name,
                status="success",
                rows=len(table),
                elapsed_seconds=(datetime.now(UTC) - started).total_seconds(),
                derived=derived,
            )
        )
        logger.info("table=%s rows=%d keys=%s", table.name, len(table), list(table.key_columns))

    total = len(config.tables) + len(config.derived)
    with ProgressTracker(total) as progress:
        for schema in config.tables:
            progress.start_table(schema.name)
            started = datetime.now(UTC)
            try:
                table = build_table(schema, directory, config.keep_na_strings)
            except Exception as e:  # 1テーブルの失敗で他テーブルを止めない
                if _error_type(e) == "UNEXPECTED_ERROR":
                    logger.debug("table=%s traceback", schema.name, exc_info=True)
                _failed(schema.name, started, _error_type(e), str(e), derived=False, schema=schema)
                progress.finish_table(success=False)
                continue
            _succeeded(table, started, derived=False)
            progress.finish_table(success=True)

        for derived in config.derived:
            progress.start_table(derived.name)
            started = datetime.now(UTC)
            missing = [s for s in derived.sources if s not in tables]
            if missing:
                _failed(
                    derived.name, started, "DEPENDENCY_ERROR", f"source tables not built: {missing}", True, None
                )
                progress.finish_table(success=False)
                continue
            try:
                table = build_derived(derived, tables, config.mean_precision)
            except (TidyError, ValueError) as e:
                _failed(derived.name, started, _error_type(e), str(e), derived=True, schema=None)
                progress.finish_table(success=False)
                continue
            _succeeded(table, started, derived=True)
            progress.finish_table(success=True)

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning("could not write error log: %s", e)
    else:
        if log_path is not None:
            logger.info("error log written: %s", log_path)

    end_time = datetime.now(UTC)
    ok = [s for s in stats if s.status == "success"]
    return BuildResult(
        tables=tables,
        success_tables=len(ok),
        failed_tables=len(stats) - len(ok),
        derived_tables=sum(1 for s in ok if s.derived),
        total_rows=sum(s.rows for s in ok),
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=(end_time - start_time).total_seconds(),
        table_stats=stats,
    )
