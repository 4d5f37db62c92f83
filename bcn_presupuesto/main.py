#!/usr/bin/env python3
"""BCN budget orchestrator - fetch, aggregate, report and save.

This module runs the complete ingestion workflow for one or more years:
1. Fetch the BCN period page (or serve it from cache)
2. Extract partidas and total them
3. Roll partidas up by ministry
4. Save the snapshot to JSON and optionally export ministries
5. Print a formatted report

Usage (from project root):
    python -m bcn_presupuesto.main -y 2024
    python -m bcn_presupuesto.main -y 2022 2023 2024 --export xlsx
    python -m bcn_presupuesto.main --check
    python -m bcn_presupuesto.main --list-years

CLI Flags:
    --year, -y      Year(s) to process (default: current year)
    --list-years    Print the supported years and exit
    --check         Probe BCN availability and exit
    --no-save       Don't save JSON output
    --quiet         Suppress report output
    --export        Also export ministry rollups (csv or xlsx)
    --top           Number of ministries shown in the report (default: 3)
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import UTC, datetime
from typing import Any

from bcn_presupuesto.config import get_config, setup_logging
from bcn_presupuesto.extractor.types import BudgetSnapshot, StandardBudget
from bcn_presupuesto.scraper.bcn_service import BcnService
from bcn_presupuesto.writer.snapshot_writer import (
    save_snapshot,
    write_ministries_to_csv,
    write_ministries_workbook,
)

logger = setup_logging(__name__)

TRILLION = 1_000_000_000_000
BILLION = 1_000_000_000


# =============================================================================
# Report
# =============================================================================


def format_report(snapshot: BudgetSnapshot, standard: StandardBudget | None, top: int = 3) -> str:
    """Render a plain-text summary of a snapshot and its ministry rollups."""
    lines = [
        f"=== BCN presupuesto {snapshot.year} ===",
        f"Fuente: {snapshot.source}",
        f"URL: {snapshot.source_url}",
        f"Datos reales: {'Sí' if snapshot.is_real_data else 'No'}",
    ]

    if snapshot.is_fallback:
        lines.append(f"Nota: {snapshot.note}")
        return "\n".join(lines)

    totals = snapshot.totals
    lines += [
        f"Partidas: {snapshot.lines_count}",
        f"Aprobado: ${totals.approved / TRILLION:,.2f} billones",
        f"Vigente: ${totals.current / TRILLION:,.2f} billones",
        f"Devengado: ${totals.executed / TRILLION:,.2f} billones",
        f"% Ejecución: {totals.execution_percentage:.2f}%",
    ]

    if standard is not None and standard.ministries:
        lines.append(f"Top {min(top, standard.ministries_count)} ministerios por presupuesto:")
        for index, ministry in enumerate(standard.ministries[:top], start=1):
            lines.append(
                f"  {index}. {ministry.name} [{ministry.code}] "
                f"${ministry.budget / BILLION:,.2f} mil millones ({ministry.percentage:.1f}%), "
                f"ejecución {ministry.execution_percentage:.1f}%",
            )

    return "\n".join(lines)


# =============================================================================
# Workflow
# =============================================================================


async def process_years(
    years: list[int],
    save: bool = True,
    verbose: bool = True,
    export: str | None = None,
    top: int = 3,
    service: BcnService | None = None,
    config: dict[str, Any] | None = None,
) -> list[tuple[BudgetSnapshot, StandardBudget | None]]:
    """Fetch, report and persist each requested year.

    Parameters
    ----------
    years : list[int]
        Fiscal years to process, in order.
    save : bool, optional
        Write each snapshot to ``DATA_DIR/processed``.
    verbose : bool, optional
        Print the report for each year.
    export : str | None, optional
        ``"csv"`` for one CSV per year, ``"xlsx"`` for a combined workbook.
    top : int, optional
        Ministries listed per report.
    service : BcnService | None, optional
        Orchestrator to use; built from ``config`` when ``None``.
    config : dict[str, Any] | None, optional
        Project config.

    Returns
    -------
    list[tuple[BudgetSnapshot, StandardBudget | None]]
        Snapshot and standard rollup per year (``None`` for fallbacks).
    """
    if service is None:
        service = BcnService(config=config)

    results: list[tuple[BudgetSnapshot, StandardBudget | None]] = []

    for year in years:
        snapshot = await service.get_budget_data(year)
        standard = service.transform_to_standard_format(snapshot)
        results.append((snapshot, standard))

        if save:
            save_snapshot(snapshot, config=config)
        if export == "csv" and standard is not None:
            write_ministries_to_csv(standard, config=config)
        if verbose:
            print(format_report(snapshot, standard, top))
            print()

    if export == "xlsx":
        standards = [standard for _snapshot, standard in results if standard is not None]
        if standards:
            write_ministries_workbook(standards)
        else:
            logger.warning("No real BCN data to export")

    return results


# =============================================================================
# CLI
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fetch Chilean budget partidas from BCN, aggregate by ministry and save.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m bcn_presupuesto.main --year 2024                 # Single year
  python -m bcn_presupuesto.main -y 2023 2024 --export csv   # Several years + CSV
  python -m bcn_presupuesto.main --check                     # Is BCN reachable?
  python -m bcn_presupuesto.main --list-years
        """,
    )
    parser.add_argument(
        "--year",
        "-y",
        type=int,
        nargs="+",
        default=[datetime.now(UTC).year],
        help="Year(s) to process (default: current year)",
    )
    parser.add_argument("--list-years", action="store_true", help="Print supported years and exit")
    parser.add_argument("--check", action="store_true", help="Check BCN availability and exit")
    parser.add_argument("--no-save", action="store_true", help="Don't save to JSON")
    parser.add_argument("--quiet", action="store_true", help="Don't print report")
    parser.add_argument("--export", choices=["csv", "xlsx"], help="Export ministry rollups")
    parser.add_argument("--top", type=int, default=3, help="Ministries listed in the report")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Parse CLI flags and run the requested action.

    Returns
    -------
    int
        ``0`` when at least one year produced real data (or the requested
        check/listing succeeded); ``1`` otherwise.
    """
    args = build_parser().parse_args(argv)
    config = get_config()
    service = BcnService(config=config)

    if args.list_years:
        years = service.get_available_years()
        print(f"Años disponibles: {years[0]}-{years[-1]} ({len(years)})")
        return 0

    if args.check:
        status = asyncio.run(service.check_availability())
        print(f"BCN {'disponible' if status.available else 'no disponible'} (status {status.status}): {status.message}")
        return 0 if status.available else 1

    results = asyncio.run(
        process_years(
            years=args.year,
            save=not args.no_save,
            verbose=not args.quiet,
            export=args.export,
            top=args.top,
            service=service,
            config=config,
        ),
    )

    real_count = sum(1 for snapshot, _standard in results if snapshot.is_real_data)
    logger.info("Processed %d years, %d with real BCN data", len(results), real_count)
    return 0 if real_count > 0 else 1


if __name__ == "__main__":
    sys.exit(main())
