"""Snapshot writer for per-year JSON output and ministry exports.

Naming convention for per-year files:
- bcn_presupuesto_2023.json
- bcn_presupuesto_2024.json
- bcn_presupuesto_2024.csv (ministry rollups)
- bcn_presupuesto_ministerios.xlsx (one sheet per year)
"""

from __future__ import annotations

import json
import operator
import re
from typing import TYPE_CHECKING, Any

import pandas as pd

from bcn_presupuesto.config import DATA_DIR, format_snapshot_filename, setup_logging
from bcn_presupuesto.extractor.types import BudgetSnapshot

if TYPE_CHECKING:
    from pathlib import Path

    from bcn_presupuesto.extractor.types import StandardBudget

logger = setup_logging(__name__)

MINISTRY_COLUMNS = [
    "code",
    "name",
    "budget",
    "approved",
    "modifications",
    "current",
    "executed",
    "executionPercentage",
    "percentage",
    "linesCount",
]


def save_snapshot(
    snapshot: BudgetSnapshot,
    output_dir: Path | None = None,
    config: dict[str, Any] | None = None,
) -> Path:
    """Save a snapshot as JSON.

    Parameters
    ----------
    snapshot
        Snapshot to persist (real, stale or fallback).
    output_dir
        Custom output directory; defaults to ``DATA_DIR/processed``.
    config
        Preloaded config used for the filename prefix.

    Returns
    -------
    Path
        Location of the written JSON file.
    """
    save_dir = output_dir if output_dir is not None else DATA_DIR / "processed"
    save_dir.mkdir(parents=True, exist_ok=True)

    filepath = save_dir / format_snapshot_filename(snapshot.year, "json", config)

    with filepath.open("w", encoding="utf-8") as f:
        json.dump(snapshot.to_dict(), f, indent=2, ensure_ascii=False)

    logger.info("Saved snapshot: %s", filepath)
    return filepath


def load_snapshot(
    year: int,
    input_dir: Path | None = None,
    config: dict[str, Any] | None = None,
) -> BudgetSnapshot:
    """Load a snapshot previously written by :func:`save_snapshot`.

    Raises
    ------
    FileNotFoundError
        If no snapshot file exists for ``year``.
    """
    load_dir = input_dir if input_dir is not None else DATA_DIR / "processed"
    filepath = load_dir / format_snapshot_filename(year, "json", config)

    if not filepath.exists():
        msg = f"Snapshot not found: {filepath}"
        raise FileNotFoundError(msg)

    with filepath.open(encoding="utf-8") as f:
        data = json.load(f)

    logger.info("Loaded snapshot: %s", filepath)
    return BudgetSnapshot.from_dict(data)


def list_available_snapshots(input_dir: Path | None = None) -> list[dict[str, Any]]:
    """List snapshot JSON files.

    Parameters
    ----------
    input_dir
        Directory to search; defaults to ``DATA_DIR/processed``.

    Returns
    -------
    list[dict[str, Any]]
        ``year``, ``is_real_data`` and ``filepath`` per file, sorted by year.
    """
    search_dir = input_dir if input_dir is not None else DATA_DIR / "processed"

    if not search_dir.exists():
        return []

    results = []

    # Pattern: <prefix>_2024.json
    for filepath in search_dir.glob("*.json"):
        match = re.match(r".+_(\d{4})\.json$", filepath.name)
        if not match:
            continue

        with filepath.open(encoding="utf-8") as f:
            data = json.load(f)

        results.append(
            {
                "year": int(match.group(1)),
                "is_real_data": bool(data.get("isRealData", False)),
                "filepath": filepath,
            },
        )

    results.sort(key=operator.itemgetter("year"))
    return results


def ministries_to_dataframe(standard: StandardBudget) -> pd.DataFrame:
    """Tabulate ministry rollups, one row per ministry in budget order."""
    rows = []
    for ministry in standard.ministries:
        row = ministry.to_dict()
        row["linesCount"] = len(row.pop("lines"))
        rows.append(row)
    return pd.DataFrame(rows, columns=MINISTRY_COLUMNS)


def write_ministries_to_csv(
    standard: StandardBudget,
    output_dir: Path | None = None,
    config: dict[str, Any] | None = None,
) -> Path:
    """Write a year's ministry rollups to CSV.

    Returns
    -------
    Path
        Location of the written CSV file.
    """
    save_dir = output_dir if output_dir is not None else DATA_DIR / "output"
    save_dir.mkdir(parents=True, exist_ok=True)

    filepath = save_dir / format_snapshot_filename(standard.year, "csv", config)
    ministries_to_dataframe(standard).to_csv(filepath, index=False, encoding="utf-8")

    logger.info("Saved ministries CSV: %s", filepath)
    return filepath


def write_ministries_workbook(
    standards: list[StandardBudget],
    output_dir: Path | None = None,
    filename: str = "bcn_presupuesto_ministerios.xlsx",
) -> Path:
    """Write ministry rollups of several years into one workbook.

    Each year becomes a sheet named after it, in ascending order.

    Raises
    ------
    ValueError
        If ``standards`` is empty.
    """
    if not standards:
        msg = "No budget data to write"
        raise ValueError(msg)

    save_dir = output_dir if output_dir is not None else DATA_DIR / "output"
    save_dir.mkdir(parents=True, exist_ok=True)
    filepath = save_dir / filename

    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for standard in sorted(standards, key=operator.attrgetter("year")):
            ministries_to_dataframe(standard).to_excel(writer, sheet_name=str(standard.year), index=False)

    logger.info("Saved ministries workbook: %s (%d years)", filepath, len(standards))
    return filepath
