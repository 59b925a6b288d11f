from __future__ import annotations

from pathlib import Path

import pytest

from fvtidy.config.loader import ConfigError, load_config, resolve_config_path
from fvtidy.models.config_models import HeaderSpec


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_sample_config(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.workbook_directory == "./data"
    assert cfg.output_directory == "./out"
    assert cfg.mean_precision == 1
    assert cfg.levels == {"premises_type": ("Residential", "Non-Residential")}

    incidents, orders = cfg.tables
    assert incidents.name == "incidents"
    assert incidents.range == "A3:H8"
    assert incidents.header == HeaderSpec(rows=2, dimensions=("financial_year", "premises_type"))
    assert incidents.group_columns == ("police_region", "lga")
    assert incidents.key_columns == ("police_region", "lga", "financial_year", "premises_type")
    assert incidents.exclude == ("Total",)
    assert orders.value_name == "orders"
    assert orders.column_names is None

    region_year, joined = cfg.derived
    assert region_year.kind == "aggregate"
    assert region_year.sources == ("incidents",)
    assert region_year.keys == ("police_region", "financial_year")
    assert region_year.op == "sum"
    assert joined.kind == "join"
    assert joined.sources == ("region_year", "orders")


def test_header_defaults(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9'}\n",
    )
    (table,) = load_config(path).tables
    assert table.header == HeaderSpec()
    assert table.value_name == "value"
    assert table.has_header is True


def test_workbook_directory_env_override(write_config: Path, monkeypatch):
    monkeypatch.setenv("FVTIDY_WORKBOOK_DIR", "/srv/workbooks")
    assert load_config(write_config).workbook_directory == "/srv/workbooks"


def test_config_file_missing(temp_workdir: Path):
    with pytest.raises(ConfigError) as e:
        load_config(temp_workdir / "config" / "missing.yml")
    assert "config file not found" in str(e.value)


def test_invalid_yaml(temp_workdir: Path):
    path = _write(temp_workdir / "config" / "deck.yml", "tables: [unclosed\n")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "invalid yaml" in str(e.value)


def test_missing_required_key(temp_workdir: Path):
    path = _write(temp_workdir / "config" / "deck.yml", "workbook_directory: ./data\n")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "config validation failed at <root>" in str(e.value)
    assert "tables" in str(e.value)


@pytest.mark.parametrize(
    ("table", "where"),
    [
        ("{name: t, workbook: a.xlsx, sheet: S, range: 'B:D'}", "tables/0/range"),
        ("{name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9', colour: red}", "tables/0"),
        ("{name: 'bad name', workbook: a.xlsx, sheet: S, range: 'B2:D9'}", "tables/0/name"),
        ("{name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9', header: {rows: -1}}", "tables/0/header/rows"),
    ],
)
def test_table_schema_violations(temp_workdir: Path, table: str, where: str):
    path = _write(temp_workdir / "config" / "deck.yml", f"workbook_directory: ./data\ntables:\n  - {table}\n")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert f"config validation failed at {where}:" in str(e.value)


def test_derived_needs_exactly_one_kind(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9'}\n"
        "derived:\n"
        "  - {name: d}\n",
    )
    with pytest.raises(ConfigError):
        load_config(path)


def test_unknown_aggregate_op(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9'}\n"
        "derived:\n"
        "  - {name: d, aggregate: {source: t, by: [category], op: median}}\n",
    )
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "derived/0/aggregate/op" in str(e.value)


def test_duplicate_table_names(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9'}\n"
        "  - {name: t, workbook: a.xlsx, sheet: S2, range: 'B2:D9'}\n",
    )
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "duplicate table name: t" in str(e.value)


def test_derived_forward_reference_rejected(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9'}\n"
        "derived:\n"
        "  - {name: j, join: {left: t, right: later, on: [category]}}\n"
        "  - {name: later, aggregate: {source: t, by: [category], op: sum}}\n",
    )
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "undeclared tables: ['later']" in str(e.value)


def test_has_header_false_with_header_rows_rejected(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9', has_header: false}\n",
    )
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "has_header is false" in str(e.value)


def test_value_name_clashing_with_key_rejected(temp_workdir: Path):
    path = _write(
        temp_workdir / "config" / "deck.yml",
        "workbook_directory: ./data\n"
        "tables:\n"
        "  - {name: t, workbook: a.xlsx, sheet: S, range: 'B2:D9', group_columns: [lga], value_name: lga}\n",
    )
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "column names used twice: ['lga']" in str(e.value)


def test_resolve_config_path_precedence(monkeypatch):
    monkeypatch.delenv("FVTIDY_CONFIG", raising=False)
    assert resolve_config_path(None) == Path("config/deck.yml")
    monkeypatch.setenv("FVTIDY_CONFIG", "other/deck.yml")
    assert resolve_config_path(None) == Path("other/deck.yml")
    assert resolve_config_path(Path("cli.yml")) == Path("cli.yml")
