from __future__ import annotations

from ..models.build_result import BuildResult

"""SUMMARY line rendering for a deck build."""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # 指数表記を避ける
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: BuildResult) -> str:
    """Render the SUMMARY line for a build.

    Format::

        SUMMARY tables={total} success={ok} failed={failed} rows={rows} derived={derived} elapsed_sec={s}

    Examples:
        >>> from datetime import datetime, timezone
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = BuildResult(tables={}, success_tables=3, failed_tables=1, derived_tables=1,
        ...                 total_rows=120, start_time=t, end_time=t, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY tables=4 success=3 failed=1 rows=120 derived=1 elapsed_sec=2'
    """
    total = result.success_tables + result.failed_tables
    return (
        f"SUMMARY tables={total} "
        f"success={result.success_tables} "
        f"failed={result.failed_tables} "
        f"rows={result.total_rows} "
        f"derived={result.derived_tables} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
