#!/usr/bin/env python3
"""Dataset generation script for import performance testing.

Generates a synthetic readings file (.csv or .xlsx, chosen by the output
suffix) plus a matching meter list (meters.csv, id;meter_number) that can be
passed to `meter-import --meters` in mock mode.

A configurable share of rows is deliberately broken (missing meter number,
bad date, bad value, unknown meter) so that every validation tier shows up.
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

HEADERS = ["Zählernummer", "Datum", "Stand", "Notiz"]
METER_PREFIXES = ["STR", "GAS", "WAS", "HZG"]


def generate_meters(count: int) -> pd.DataFrame:
    numbers = [f"{METER_PREFIXES[i % len(METER_PREFIXES)]}-{i + 1:04d}" for i in range(count)]
    return pd.DataFrame({"id": [f"m{i + 1}" for i in range(count)], "meter_number": numbers})


def generate_readings(rows: int, meters: pd.DataFrame, bad_ratio: float = 0.05, seed: int = 42) -> pd.DataFrame:
    """Generate readings with German formatted dates and comma decimals.

    Args:
        rows: Number of data rows
        meters: Meter list from generate_meters()
        bad_ratio: Share of rows made invalid (split over the four issue kinds)
        seed: Random seed for reproducible data
    """
    rng = np.random.default_rng(seed)
    meter_numbers = rng.choice(meters["meter_number"].to_numpy(), rows).tolist()
    days = pd.Timestamp("2024-01-01") + pd.to_timedelta(rng.integers(0, 365, rows), unit="D")
    dates = [d.strftime("%d.%m.%Y") for d in days]
    values = [f"{v:.2f}".replace(".", ",") for v in rng.uniform(0, 99_999, rows)]
    notes = rng.choice(["", "Jahresablesung", "Zwischenablesung"], rows).tolist()

    bad = rng.random(rows) < bad_ratio
    kinds = rng.integers(0, 4, rows)
    for i in np.flatnonzero(bad):
        if kinds[i] == 0:
            meter_numbers[i] = ""
        elif kinds[i] == 1:
            dates[i] = "31.02.2024"
        elif kinds[i] == 2:
            values[i] = "n/a"
        else:
            meter_numbers[i] = f"UNK-{i}"
    return pd.DataFrame(dict(zip(HEADERS, [meter_numbers, dates, values, notes])))


def write_dataset(output: Path, rows: int, meter_count: int, bad_ratio: float, seed: int) -> Path:
    output.parent.mkdir(parents=True, exist_ok=True)
    meters = generate_meters(meter_count)
    readings = generate_readings(rows, meters, bad_ratio, seed)
    if output.suffix.lower() == ".xlsx":
        readings.to_excel(output, index=False, engine="openpyxl")
    else:
        readings.to_csv(output, sep=";", index=False)
    meters_path = output.with_name("meters.csv")
    meters.to_csv(meters_path, sep=";", index=False)
    print(f"Created readings file: {output} ({rows:,} rows)")
    print(f"Created meter list: {meters_path} ({meter_count} meters)")
    return output


def main() -> int:
    parser = argparse.ArgumentParser(description="Generate synthetic meter reading files for performance testing")
    parser.add_argument("output", type=Path, help="Output file (.csv or .xlsx)")
    parser.add_argument("--rows", type=int, default=50_000, help="Number of data rows (default: 50,000)")
    parser.add_argument("--meters", type=int, default=200, help="Number of meters (default: 200)")
    parser.add_argument("--bad-ratio", type=float, default=0.05, help="Share of invalid rows (default: 0.05)")
    parser.add_argument("--seed", type=int, default=42, help="Random seed (default: 42)")
    args = parser.parse_args()

    if args.rows <= 0 or args.meters <= 0:
        print("Error: --rows and --meters must be positive", file=sys.stderr)
        return 1
    if not 0 <= args.bad_ratio <= 1:
        print("Error: --bad-ratio must be between 0 and 1", file=sys.stderr)
        return 1
    try:
        write_dataset(args.output, args.rows, args.meters, args.bad_ratio, args.seed)
    except Exception as e:
        print(f"Error generating dataset: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
