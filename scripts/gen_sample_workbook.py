#!/usr/bin/env python3
"""Generate a synthetic family-violence statistics workbook for demos.

The sheets follow the source agency's layout that the deck config targets:
- Row 1: table title (banner)
- Row 2: blank
- Row 3-4: two-row header (financial year merged across premises categories)
- Row 5+: data, police region shown only on the first LGA row of each region
- Small counts suppressed as "≤3", missing figures as "—"

Pair it with config/deck.yml: ``python scripts/gen_sample_workbook.py data/fv_sample.xlsx``.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

REGIONS: dict[str, list[str]] = {
    "North West Metro": ["Melbourne", "Moonee Valley", "Hume", "Brimbank"],
    "Southern Metro": ["Casey", "Frankston", "Dandenong"],
    "Eastern": ["Ballarat", "Latrobe", "Wodonga"],
    "Western": ["Geelong", "Warrnambool"],
}
YEARS = ["2019-20", "2020-21", "2021-22"]
PREMISES = ["Residential", "Non-Residential"]


def _count(rng: np.random.Generator, scale: int) -> Any:
    value = int(rng.integers(0, scale))
    if value <= 3:
        return "≤3"  # disclosure-control suppression
    if rng.random() < 0.02:
        return "—"
    return f"{value:,}" if value >= 1000 else value


def incidents_sheet(rng: np.random.Generator) -> list[list[Any]]:
    width = 2 + len(YEARS) * len(PREMISES) + len(PREMISES)
    rows: list[list[Any]] = [
        ["Table 02: Family incidents by police region, LGA, financial year and premises type"] + [None] * (width - 1),
        [None] * width,
    ]
    year_row: list[Any] = ["Police region", "Local government area"]
    cat_row: list[Any] = [None, None]
    for label in YEARS + ["Total"]:
        year_row += [label] + [None] * (len(PREMISES) - 1)
        cat_row += PREMISES
    rows += [year_row, cat_row]
    for region, lgas in REGIONS.items():
        for i, lga in enumerate(lgas):
            counts = [_count(rng, 4000 if p == "Residential" else 600) for _ in YEARS for p in PREMISES]
            totals = [None] * len(PREMISES)  # 合計列は出力側で除外される想定
            rows.append([region if i == 0 else None, lga] + counts + totals)
    return rows


def orders_sheet(rng: np.random.Generator) -> list[list[Any]]:
    rows: list[list[Any]] = [
        ["Table 07: Family violence intervention orders by police region"] + [None] * len(YEARS),
        [None] * (1 + len(YEARS)),
        ["Police region"] + YEARS,
    ]
    for region in REGIONS:
        rows.append([region] + [int(rng.integers(500, 5000)) for _ in YEARS])
    return rows


def create_workbook(output_path: Path, seed: int = 42) -> None:
    rng = np.random.default_rng(seed)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    sheets = {"Table 02": incidents_sheet(rng), "Table 07": orders_sheet(rng)}
    with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
        ws = writer.sheets["Table 02"]
        # 年度ヘッダを結合セルにする (値は左端セルのみ)
        for k in range(len(YEARS) + 1):
            first = 3 + k * len(PREMISES)
            ws.merge_cells(start_row=3, start_column=first, end_row=3, end_column=first + len(PREMISES) - 1)
    print(f"Created workbook: {output_path}")
    print(f"  Sheets: {', '.join(sheets)}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate a synthetic family-violence statistics workbook")
    parser.add_argument("output", type=Path, help="Output .xlsx path")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()
    if args.output.suffix.lower() != ".xlsx":
        print("Error: output must be an .xlsx file", file=sys.stderr)
        return 1
    create_workbook(args.output, seed=args.seed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
