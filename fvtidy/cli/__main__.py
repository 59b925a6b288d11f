from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from ..config.loader import ConfigError, load_config, resolve_config_path
from ..errors import TidyError
from ..excel.reader import read_range
from ..logging.init import log_summary, setup_logging
from ..services.builder import BuildError, build_deck
from ..services.export import export_tables
from ..services.summary import render_summary_line

"""CLI entrypoint: build every table of the deck and export them as CSV.

- Load .env (overrides the process environment)
- Load and validate the deck config
- Build tables, export ``<out>/<name>.csv``, print the SUMMARY line

Exit codes: 0 all tables built, 2 some tables failed, 1 fatal.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; .env values win over the existing environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="fvtidy", description="Spreadsheet ranges -> tidy tables for the deck charts")
    p.add_argument("--config", type=Path, default=None, help="Deck config YAML (default: $FVTIDY_CONFIG or config/deck.yml)")
    p.add_argument("--out", type=Path, default=None, help="Output directory for CSV exports (default: output_directory in config)")
    p.add_argument("--no-export", action="store_true", help="Build tables without writing CSV files")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect", action="store_true", help="Print the first rows of every declared range then exit")
    p.add_argument("--rows", type=int, default=3, help="Rows shown per range with --inspect")
    return p.parse_args(argv)


def _inspect(cfg, rows: int) -> int:
    directory = Path(cfg.workbook_directory)
    for schema in cfg.tables:
        print(f"TABLE: {schema.name} {schema.workbook} {schema.sheet}!{schema.range}")
        try:
            block = read_range(
                directory / schema.workbook,
                schema.sheet,
                schema.range,
                has_header=schema.has_header,
                keep_na_strings=cfg.keep_na_strings or None,
            )
        except TidyError as e:
            print(f"  error={e}")
            continue
        print(f"  shape={block.shape} header_rows={schema.header.rows} group_columns={list(schema.group_columns)}")
        for r in block.cells[: schema.header.rows + rows]:
            print(f"    {list(r)}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみシステム引数を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        setup_logging(debug=True)
        logger.debug("debug mode enabled")

    config_path = resolve_config_path(args.config)
    try:
        cfg = load_config(config_path)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    directory = Path(cfg.workbook_directory)
    if not directory.is_dir():
        logger.error(f"workbook directory not found: {directory}")
        return EXIT_FATAL

    if args.inspect:
        return _inspect(cfg, args.rows)

    logger.info(f"Building {len(cfg.tables)} tables + {len(cfg.derived)} derived from: {directory}")
    try:
        result = build_deck(cfg)
    except BuildError as e:
        logger.error(f"build: {e}")
        return EXIT_FATAL

    if not args.no_export:
        out_dir = args.out or Path(cfg.output_directory)
        written = export_tables(result.tables, out_dir, cfg.levels)
        logger.info(f"exported {len(written)} tables to {out_dir}")

    summary_line = render_summary_line(result)
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_tables > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
