from __future__ import annotations

import importlib.util
import json
import shutil
from pathlib import Path

import pandas as pd
import pytest

from fvtidy.cli import main as cli_main
from fvtidy.config.loader import load_config
from fvtidy.services.builder import build_deck

"""End-to-end deck build against the generated sample workbook and config/deck.yml."""

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _load_generator():
    spec = importlib.util.spec_from_file_location("gen_sample_workbook", PROJECT_ROOT / "scripts" / "gen_sample_workbook.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture()
def generator():
    return _load_generator()


@pytest.fixture()
def deck_workdir(temp_workdir: Path, generator) -> Path:
    generator.create_workbook(temp_workdir / "data" / "fv_sample.xlsx", seed=7)
    shutil.copy(PROJECT_ROOT / "config" / "deck.yml", temp_workdir / "config" / "deck.yml")
    return temp_workdir


def test_sample_deck_builds_every_table(deck_workdir: Path, generator):
    result = build_deck(load_config(deck_workdir / "config" / "deck.yml"))

    n_lgas = sum(len(v) for v in generator.REGIONS.values())
    n_regions = len(generator.REGIONS)
    n_years = len(generator.YEARS)
    assert result.failed_tables == 0
    assert result.success_tables == 5
    assert result.derived_tables == 3

    incidents = result.tables["incidents_by_lga"]
    assert len(incidents) == n_lgas * n_years * len(generator.PREMISES)
    assert set(incidents.column("financial_year")) == set(generator.YEARS)
    assert set(incidents.column("police_region")) == set(generator.REGIONS)
    assert all(v is None or v >= 0 for v in incidents.column("incidents"))

    assert len(result.tables["intervention_orders"]) == n_regions * n_years
    assert len(result.tables["incidents_by_region"]) == n_regions * n_years
    assert len(result.tables["mean_incidents_by_region"]) == n_regions * len(generator.PREMISES)
    joined = result.tables["incidents_and_orders"]
    assert len(joined) == n_regions * n_years
    assert None not in joined.column("orders")


def test_region_sums_match_lga_values(deck_workdir: Path):
    result = build_deck(load_config(deck_workdir / "config" / "deck.yml"))
    incidents = result.tables["incidents_by_lga"].to_frame()
    expected = incidents.groupby(["police_region", "financial_year"], sort=False)["incidents"].sum(min_count=1)
    by_region = result.tables["incidents_by_region"]
    for row in by_region:
        if row.values[0] is None:
            assert pd.isna(expected.loc[row.keys])
        else:
            assert row.values[0] == pytest.approx(expected.loc[row.keys])


def test_cli_run_exports_csv_with_level_order(deck_workdir: Path, capsys):
    assert cli_main([]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY tables=5 success=5 failed=0" in out

    exported = sorted(p.stem for p in (deck_workdir / "out").glob("*.csv"))
    assert exported == [
        "incidents_and_orders",
        "incidents_by_lga",
        "incidents_by_region",
        "intervention_orders",
        "mean_incidents_by_region",
    ]
    df = pd.read_csv(deck_workdir / "out" / "incidents_by_lga.csv")
    assert list(df.columns) == ["police_region", "lga", "financial_year", "premises_type", "incidents"]
    assert "Total" not in set(df["financial_year"])


def test_cli_partial_failure_writes_error_log(deck_workdir: Path, capsys):
    cfg = deck_workdir / "config" / "deck.yml"
    cfg.write_text(cfg.read_text(encoding="utf-8").replace("rows: 2", "rows: 1"), encoding="utf-8")

    assert cli_main([]) == 2
    out = capsys.readouterr().out
    assert "SUMMARY tables=5 success=1 failed=4" in out

    (log_file,) = (deck_workdir / "logs").glob("errors-*.log")
    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert records[0]["table"] == "incidents_by_lga"
    assert records[0]["error_type"] == "SHAPE_ERROR"
    assert {r["error_type"] for r in records[1:]} == {"DEPENDENCY_ERROR"}
