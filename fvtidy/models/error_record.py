from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the per-run table error log.

One record per table that failed to build. ``range`` is empty for derived tables,
which have no spreadsheet source of their own.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        table: Table (plot) identifier that failed
        workbook: Workbook file name, empty for derived tables
        sheet: Sheet name, empty for derived tables
        range: Range address, empty for derived tables
        error_type: SOURCE_ERROR / SHAPE_ERROR / VALUE_ERROR / DEPENDENCY_ERROR / UNEXPECTED_ERROR
        message: Exception text
    """
    timestamp: str  # ISO8601 UTC
    table: str
    workbook: str
    sheet: str
    range: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        table: str, workbook: str, sheet: str, range: str, error_type: str, message: str
    ) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            table=table,
            workbook=workbook,
            sheet=sheet,
            range=range,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
