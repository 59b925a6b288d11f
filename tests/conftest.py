# Shared pytest fixtures
from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from fvtidy.excel.reader import clear_cache
from fvtidy.logging.init import reset_logging

SheetRows = list[list[Any]]

# Table 02 layout: banner, blank, 2-row header (year merged over premises), region shown once
INCIDENT_ROWS: SheetRows = [
    ["Table 02: Family incidents by police region and LGA", None, None, None, None, None, None, None],
    [None] * 8,
    ["Police region", "LGA", "2019-20", None, "2020-21", None, "Total", None],
    [None, None, "Residential", "Non-Residential", "Residential", "Non-Residential", "Residential", "Non-Residential"],
    ["North", "Hume", 100, "≤3", "1,234", "—", None, None],
    [None, "Moreland", 50, 10, 60, 12, None, None],
    ["South", "Casey", 200, 20, 210, "22", None, None],
    [None, "Frankston", 80, "n.p.", 90, 8, None, None],
]

ORDER_ROWS: SheetRows = [
    ["Table 07: Intervention orders by police region", None, None],
    [None, None, None],
    ["Police region", "2019-20", "2020-21"],
    ["North", 500, 520],
    ["South", 300, 310],
]


@pytest.fixture(autouse=True)
def _fresh_state():
    clear_cache()
    reset_logging()
    yield
    clear_cache()


@pytest.fixture()
def temp_workdir(tmp_path: Path, monkeypatch) -> Path:
    (tmp_path / "config").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "logs").mkdir()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("FVTIDY_CONFIG", raising=False)
    monkeypatch.delenv("FVTIDY_WORKBOOK_DIR", raising=False)
    return tmp_path


@pytest.fixture()
def make_workbook() -> Callable[[Path, dict[str, SheetRows]], Path]:
    def _make(path: Path, sheets: dict[str, SheetRows]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet, rows in sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
        return path
    return _make


@pytest.fixture()
def sample_workbook(temp_workdir: Path, make_workbook) -> Path:
    return make_workbook(temp_workdir / "data" / "fv.xlsx", {"Table 02": INCIDENT_ROWS, "Table 07": ORDER_ROWS})


@pytest.fixture()
def sample_config_yaml() -> str:
    return """workbook_directory: ./data
output_directory: ./out
levels:
  premises_type: [Residential, Non-Residential]
tables:
  - name: incidents
    workbook: fv.xlsx
    sheet: Table 02
    range: A3:H8
    header:
      rows: 2
      dimensions: [financial_year, premises_type]
    group_columns: [police_region, lga]
    value_name: incidents
    exclude: [Total]
  - name: orders
    workbook: fv.xlsx
    sheet: Table 07
    range: A3:C5
    header:
      rows: 1
      dimensions: [financial_year]
    group_columns: [police_region]
    value_name: orders
derived:
  - name: region_year
    aggregate:
      source: incidents
      by: [police_region, financial_year]
      op: sum
  - name: region_year_orders
    join:
      left: region_year
      right: orders
      on: [police_region, financial_year]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "deck.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg
